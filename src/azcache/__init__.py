"""azcache - Azure Cache for Redis provisioning workflow

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Security by design (no credentials in code)
- Cleanup always runs

Creates a resource group, provisions caches concurrently, configures them,
and tears everything down again.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
