"""coreos-metadata: cloud instance metadata to local machine state.

At boot this tool:
- Picks the cloud provider (explicitly or from the kernel cmdline)
- Fetches the provider's metadata (attributes + ssh keys)
- Writes attributes to a shell-sourceable file
- Installs ssh keys into a user's authorized_keys.d
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
