"""tangld: build pipeline for literate configuration projects.

Tangles a tree of literate documents into configuration files and scripts,
then installs them onto the live filesystem:
  - Lazy rebuilds driven by a per-file modification ledger
  - Non-blocking tangle dispatch with a join barrier per build
  - Reusable fragment library with a read-through cache
  - Pluggable install strategies (link, direct, stage, stow)
  - Pre/post build and install hooks
"""

__version__ = "0.1.0"
__description__ = "Build pipeline for literate configuration projects"

from tangld.core.pipeline import BuildPipeline
from tangld.cli.app import app as cli

__all__ = ["BuildPipeline", "cli", "__version__"]
