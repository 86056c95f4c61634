"""Libvirt domain descriptor synthesis."""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Union

HUGE_PAGE_MIB = 2


def round_memory_mib(memory: int) -> int:
    """Round up to the next 2 MiB huge page boundary."""
    return ((memory + HUGE_PAGE_MIB - 1) // HUGE_PAGE_MIB) * HUGE_PAGE_MIB


def build_domain_xml(
    name: str,
    cores: int,
    memory: int,
    disk_path: Union[str, Path],
    emulator: str,
    vhost_socket: str,
) -> str:
    """
    Build a KVM domain with one NUMA cell backed by 2 MiB huge pages.

    Args:
        name: Domain name, also used as the backend handle
        cores: vCPU count, all placed in cell 0
        memory: Requested memory in MiB, rounded with ``round_memory_mib``
        disk_path: Staged qcow2 image
        emulator: QEMU binary
        vhost_socket: vhost-user socket of the accelerated interface

    Returns:
        Domain XML document
    """
    mem_rounded = round_memory_mib(memory)

    domain = ET.Element("domain", type="kvm")
    ET.SubElement(domain, "name").text = name
    ET.SubElement(domain, "memory", unit="MiB").text = str(mem_rounded)
    ET.SubElement(domain, "vcpu").text = str(cores)

    os_el = ET.SubElement(domain, "os")
    ET.SubElement(os_el, "type", arch="x86_64").text = "hvm"

    # Shared memory access lets the vhost-user backend map guest memory
    cpu = ET.SubElement(domain, "cpu", mode="host-passthrough")
    numa = ET.SubElement(cpu, "numa")
    ET.SubElement(
        numa,
        "cell",
        id="0",
        cpus=f"0-{cores - 1}",
        memory=str(mem_rounded),
        unit="MiB",
        memAccess="shared",
    )

    backing = ET.SubElement(domain, "memoryBacking")
    hugepages = ET.SubElement(backing, "hugepages")
    ET.SubElement(hugepages, "page", size=str(HUGE_PAGE_MIB), unit="MiB")

    devices = ET.SubElement(domain, "devices")
    ET.SubElement(devices, "emulator").text = emulator

    disk = ET.SubElement(devices, "disk", type="file", device="disk")
    ET.SubElement(disk, "driver", name="qemu", type="qcow2")
    ET.SubElement(disk, "source", file=str(disk_path))
    ET.SubElement(disk, "target", dev="hda")

    bridged = ET.SubElement(devices, "interface", type="network")
    ET.SubElement(bridged, "source", network="default")
    ET.SubElement(bridged, "model", type="virtio")

    vhost = ET.SubElement(devices, "interface", type="vhostuser")
    ET.SubElement(vhost, "source", type="unix", path=vhost_socket, mode="client")
    ET.SubElement(vhost, "model", type="virtio")

    return ET.tostring(domain, encoding="unicode")
