"""
Tests for migration wave planning.
"""

import pytest
from conftest import make_context, make_disk, make_vm

from vm_readiness.assess.os_compat import OSStatus
from vm_readiness.assess.scoring import VMAssessment
from vm_readiness.assess.types import ComplexityBucket, TargetMode
from vm_readiness.assess.waves import (
    COMPLEX,
    NO_CLUSTER,
    NO_NETWORK,
    PILOT,
    QUICK_WINS,
    REMEDIATION,
    STANDARD,
    WAVE_RULES,
    NetworkGroupBy,
    WaveEntry,
    assign_wave,
    build_wave_entries,
    has_disqualifying_blocker,
    plan_network_waves,
    plan_waves,
)
from vm_readiness.models.inventory import NetworkRecord, SnapshotRecord, ToolsRecord


def entry(name="vm", complexity=0.0, pilot_os=True, blocker=False, **kwargs) -> WaveEntry:
    fields = {"vcpus": 2, "memory_gib": 8, "storage_gib": 40}
    fields.update(kwargs)
    return WaveEntry(name, complexity, pilot_os, blocker, **fields)


def scored(name: str, score: float = 0.0) -> VMAssessment:
    return VMAssessment(
        vm_name=name,
        checks={},
        blocker_count=0,
        warning_count=0,
        complexity_score=score,
        complexity_bucket=ComplexityBucket.from_score(score),
        os_status=OSStatus.FULLY_SUPPORTED,
    )


class TestAssignWave:
    """Tests for first-match wave assignment."""

    def test_rule_order(self):
        """Test that rules are evaluated blocker first, catch-all last."""
        assert [r.name for r in WAVE_RULES] == [
            "blocker",
            "pilot",
            "quick-wins",
            "standard",
            "complex",
        ]

    @pytest.mark.parametrize(
        "complexity,pilot_os,blocker,wave",
        [
            (0, True, True, REMEDIATION),
            (90, False, True, REMEDIATION),
            (10, True, False, PILOT),
            (15, True, False, PILOT),
            (10, False, False, QUICK_WINS),
            (15.1, True, False, QUICK_WINS),
            (30, True, False, QUICK_WINS),
            (30.1, True, False, STANDARD),
            (55, False, False, STANDARD),
            (55.1, False, False, COMPLEX),
            (100, True, False, COMPLEX),
        ],
    )
    def test_assignment(self, complexity, pilot_os, blocker, wave):
        """Test wave boundaries and the blocker short-circuit."""
        assert assign_wave(entry(complexity=complexity, pilot_os=pilot_os, blocker=blocker)) == wave


class TestPlanWaves:
    """Tests for plan_waves."""

    def test_partition(self):
        """Test that every VM lands in exactly one wave."""
        entries = [
            entry("a", 5),
            entry("b", 20),
            entry("c", 40),
            entry("d", 70),
            entry("e", 5, blocker=True),
            entry("f", 5, pilot_os=False),
        ]

        waves = plan_waves(entries)

        names = [n for w in waves for n in w.vm_names]
        assert sorted(names) == ["a", "b", "c", "d", "e", "f"]
        assert len(names) == len(set(names))

    def test_empty_waves_omitted(self):
        """Test that waves without members are left out, order kept."""
        waves = plan_waves([entry("a", 70), entry("b", 5)])

        assert [w.ordinal for w in waves] == [1, 4]
        assert waves[0].name == "Wave 1: Pilot"

    def test_no_entries(self):
        """Test that no entries yields no waves."""
        assert plan_waves([]) == []

    def test_totals(self):
        """Test that wave totals sum the per-VM rounded values."""
        waves = plan_waves(
            [
                entry("a", vcpus=2, memory_gib=8, storage_gib=40),
                entry("b", vcpus=4, memory_gib=16, storage_gib=100),
            ]
        )

        wave = waves[0]
        assert wave.vm_names == ("a", "b")
        assert (wave.vcpus, wave.memory_gib, wave.storage_gib) == (6, 24, 140)
        assert wave.has_blockers is False
        assert wave.to_dict()["vm_count"] == 2
        assert "avg_complexity" not in wave.to_dict()

    def test_remediation_wave_flags_blockers(self):
        """Test that the remediation wave reports blockers."""
        waves = plan_waves([entry("a", blocker=True)])

        assert waves[0].has_blockers
        assert waves[0].ordinal == 5


class TestDisqualifyingBlockers:
    """Tests for has_disqualifying_blocker."""

    def test_healthy(self):
        """Test that a healthy VM has no disqualifying blocker."""
        assert not has_disqualifying_blocker(make_vm(), make_context(), TargetMode.OPENSHIFT)

    @pytest.mark.parametrize(
        "context",
        [
            make_context(disks=(make_disk(raw=True),)),
            make_context(disks=(make_disk(sharing_mode="sharingMultiWriter"),)),
            make_context(snapshots=(SnapshotRecord("web-01", 31),)),
            make_context(tools=None),
            make_context(tools=ToolsRecord("web-01", "toolsNotInstalled")),
        ],
    )
    def test_blockers_in_every_mode(self, context):
        """Test blockers that apply regardless of target mode."""
        for mode in TargetMode:
            assert has_disqualifying_blocker(make_vm(), context, mode)

    def test_memory_ceiling_vpc_only(self):
        """Test that the memory ceiling only disqualifies in VPC mode."""
        vm = make_vm(memory_gib=2048)

        assert has_disqualifying_blocker(vm, make_context(), TargetMode.VPC)
        assert not has_disqualifying_blocker(vm, make_context(), TargetMode.OPENSHIFT)

    def test_hotplug_is_not_disqualifying(self):
        """Test that hot add does not route a VM to remediation."""
        vm = make_vm(cpu_hot_add=True, memory_hot_add=True)

        assert not has_disqualifying_blocker(vm, make_context(), TargetMode.OPENSHIFT)


class TestBuildWaveEntries:
    """Tests for build_wave_entries."""

    def test_fields_from_context(self):
        """Test entry fields derived from the VM and its primary adapter."""
        vm = make_vm(memory_gib=7.6)
        context = make_context(
            disks=(make_disk(capacity_gib=40.4), make_disk(capacity_gib=10)),
            networks=(
                NetworkRecord("web-01", port_group="App", ipv4_address="10.0.0.5"),
                NetworkRecord("web-01", port_group="Backup", ipv4_address="10.9.0.5"),
            ),
        )

        [result] = build_wave_entries(
            [vm], {"web-01": scored("web-01", 12.5)}, {"web-01": context}, TargetMode.OPENSHIFT
        )

        assert result.complexity == 12.5
        assert result.memory_gib == 8
        assert result.storage_gib == 50
        assert result.port_group == "App"
        assert result.ip_address == "10.0.0.5"
        assert result.cluster == "cluster-a"
        assert result.pilot_os is True
        assert result.has_blocker is False

    def test_half_gigabytes_round_up(self):
        """Test that memory and storage totals round halves up."""
        vm = make_vm(memory_gib=2.5)
        context = make_context(disks=(make_disk(capacity_gib=40.5),))

        [result] = build_wave_entries(
            [vm], {"web-01": scored("web-01")}, {"web-01": context}, TargetMode.OPENSHIFT
        )

        assert result.memory_gib == 3
        assert result.storage_gib == 41

    def test_defaults_without_network(self):
        """Test placeholders for VMs with no adapters or cluster."""
        vm = make_vm(cluster="")

        [result] = build_wave_entries(
            [vm], {"web-01": scored("web-01")}, {}, TargetMode.OPENSHIFT
        )

        assert result.port_group == NO_NETWORK
        assert result.cluster == NO_CLUSTER
        assert result.has_blocker is True

    def test_pilot_os_is_mode_aware(self):
        """Test that pilot OS eligibility follows the target mode."""
        vm = make_vm(guest_os="Ubuntu Linux (64-bit)")
        args = ([vm], {"web-01": scored("web-01")}, {"web-01": make_context()})

        assert build_wave_entries(*args, TargetMode.OPENSHIFT)[0].pilot_os is False
        assert build_wave_entries(*args, TargetMode.VPC)[0].pilot_os is True


class TestNetworkWaves:
    """Tests for network-grouped waves."""

    def test_port_group_ordering(self):
        """Test that clean groups come first, then smaller groups."""
        entries = [
            entry("a1", port_group="A", ip_address="10.0.0.1"),
            entry("a2", port_group="A", ip_address="10.0.0.2"),
            entry("b1", port_group="B", ip_address="10.1.0.1", blocker=True),
            entry("c1", port_group="C", ip_address="10.2.0.1"),
        ]

        waves = plan_network_waves(entries)

        assert [w.name for w in waves] == ["C", "A", "B"]
        assert [w.ordinal for w in waves] == [1, 2, 3]
        assert waves[2].has_blockers

    def test_ip_description(self):
        """Test that IPs are listed with an overflow count."""
        entries = [entry(f"vm{i}", port_group="A", ip_address=f"10.0.0.{i}") for i in range(5)]

        [wave] = plan_network_waves(entries)

        assert wave.description == "IPs: 10.0.0.0, 10.0.0.1, 10.0.0.2 +2 more"

    def test_no_ips(self):
        """Test the description when no IPs are known."""
        [wave] = plan_network_waves([entry("a")])

        assert wave.name == NO_NETWORK
        assert wave.description == "No IP addresses detected"

    def test_group_by_cluster(self):
        """Test grouping by cluster with port group descriptions."""
        entries = [
            entry("a", 10, cluster="east", port_group="App"),
            entry("b", 21, cluster="east", port_group="Db"),
            entry("c", cluster="west"),
        ]

        waves = plan_network_waves(entries, NetworkGroupBy.CLUSTER)

        assert [w.name for w in waves] == ["west", "east"]
        assert waves[0].description == "No port group info"
        assert waves[1].description == "Port Group: App, Db"
        assert waves[1].avg_complexity == 15.5
        assert waves[1].to_dict()["avg_complexity"] == 15.5
