"""FileBeam - LAN file transfer over TCP with UDP discovery"""

__version__ = "1.0.0"
