from .base import BaseCollector
from .cpu_collector import CpuCollector, MemoryCollector
from .disk_collector import DiskCollector
from .service_collector import ServiceCollector
from .time_collector import TimeDriftProbe, TimeZoneCollector

__all__ = [
    "BaseCollector",
    "CpuCollector",
    "DiskCollector",
    "MemoryCollector",
    "ServiceCollector",
    "TimeDriftProbe",
    "TimeZoneCollector",
]
