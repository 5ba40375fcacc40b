"""
FolkADB - interactive shell for Android devices over adb and fastboot.

Wraps the adb and fastboot executables with:
- A device registry tracking ADB and fastboot devices side by side
- Automatic switching between ADB and fastboot mode as devices come and go
- File transfer, shell, package and reboot commands
- Guarded partition, lock-state and slot operations in fastboot mode
- Root module installation through APatch, KernelSU or Magisk
"""

__version__ = "1.0.0"
__author__ = "FolkADB Contributors"
