"""
Custom exceptions for vm-readiness with helpful error messages.
"""


class VmReadinessError(Exception):
    """Base exception for vm-readiness errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InventoryError(VmReadinessError):
    """Errors related to the inventory snapshot."""

    pass


class InventoryNotFoundError(InventoryError):
    """Inventory file does not exist."""

    def __init__(self, path: str):
        message = f"Inventory file not found: {path}"
        suggestion = (
            "Check that the file path is correct and the file exists:\n" f"  ls -l {path}"
        )
        super().__init__(message, suggestion)


class InventoryFormatError(InventoryError):
    """Inventory file could not be read as a record document."""

    def __init__(self, path: str, detail: str):
        message = f"Cannot read inventory {path}: {detail}"
        suggestion = (
            "The inventory must be a YAML or JSON mapping of record lists, e.g.:\n"
            "  vms:\n"
            "    - name: web-01\n"
            "      vcpus: 2\n"
            "      memory_mib: 8192\n"
            "  disks:\n"
            "    - vm_name: web-01\n"
            "      capacity_mib: 40960"
        )
        super().__init__(message, suggestion)


class InvalidRecordError(InventoryError):
    """A record is missing required identity or resource fields."""

    def __init__(self, entity: str, index: int, field: str, detail: str, name: str = None):
        self.entity = entity
        self.index = index
        self.field = field

        label = f"{entity} record #{index}"
        if name:
            label += f" ({name})"
        message = f"Invalid {label}: field '{field}' {detail}"

        suggestion = (
            "Fix the offending record in the inventory export.\n"
            "Required VM fields: name, vcpus, memory_mib.\n"
            "Associated records (disks, networks, snapshots, tools, cpus, memory, cdroms) "
            "require vm_name."
        )
        super().__init__(message, suggestion)


class InvalidModeError(VmReadinessError):
    """Unknown target platform mode."""

    def __init__(self, mode: str):
        message = f"Invalid target mode: {mode}"
        suggestion = (
            "Mode must be one of:\n"
            "  - openshift (OpenShift Virtualization)\n"
            "  - vpc (VPC virtual server instances)\n\n"
            "Example:\n"
            "  vm-readiness assess inventory.yaml --mode vpc"
        )
        super().__init__(message, suggestion)


class InvalidGroupByError(VmReadinessError):
    """Unknown network wave grouping."""

    def __init__(self, group_by: str):
        message = f"Invalid network grouping: {group_by}"
        suggestion = (
            "Group by one of:\n"
            "  - port-group (primary adapter port group)\n"
            "  - cluster (source cluster)\n\n"
            "Example:\n"
            "  vm-readiness assess inventory.yaml --group-by cluster"
        )
        super().__init__(message, suggestion)


class ConfigurationError(VmReadinessError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the vm-readiness.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv vm-readiness.yaml vm-readiness.yaml.backup\n"
            "  vm-readiness init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


class ProfileNotFoundError(VmReadinessError):
    """Instance profile not found in the catalog."""

    def __init__(self, profile_name: str, available_profiles: list[str] = None):
        message = f"Instance profile '{profile_name}' not found in catalog."

        if available_profiles:
            profiles_list = "\n  - ".join(available_profiles[:10])
            suggestion = f"Available profiles include:\n  - {profiles_list}"
        else:
            suggestion = (
                "Add a custom profile to vm-readiness.yaml:\n"
                "  custom_profiles:\n"
                "    - name: my-profile\n"
                "      vcpus: 4\n"
                "      memory_gib: 24"
            )
        super().__init__(message, suggestion)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, VmReadinessError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
