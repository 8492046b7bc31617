# Passlock - local password-vault session manager
#
# Keeps one vault unlocked in memory per session; all encryption is done by
# an external vault engine process.

__version__ = "0.1.0"
__author__ = "Passlock Team"
