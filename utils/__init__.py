"""LanSweep Utils"""
from utils.logger    import get_logger, set_level, log
from utils.network   import local_interfaces
from utils.constants import SessionStage, ScanProfile, SCAN_PROFILES
__all__ = ["get_logger", "set_level", "log", "local_interfaces",
           "SessionStage", "ScanProfile", "SCAN_PROFILES"]
