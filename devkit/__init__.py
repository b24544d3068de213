"""
devkit package

Developer-environment bootstrap and build automation for a Windows .NET workflow.

Key responsibilities are split across modules:
- `settings.py`: prompt for, persist and load machine-local settings
- `tools.py`: locate prerequisite executables (7-Zip, Robocopy, devenv, git)
- `process.py`: run an external executable and check its exit code
- `archive.py`: 7-Zip compression / extraction wrappers
- `sync.py`: Robocopy directory synchronization wrapper
- `build.py`: Visual Studio solution builds through devenv.com
- `github_client.py`: isolated GitHub REST API interactions (paginated reads)
- `changelog.py` / `renderer.py`: HTML changelog from milestones and issues
- `cli.py`: CLI entrypoint and orchestration
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
