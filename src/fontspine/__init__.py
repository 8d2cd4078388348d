"""fontspine — incremental build pipeline for a CJK font family.

The package is a task graph: :mod:`fontspine.engine` runs parametric,
journaled rules; :mod:`fontspine.pipeline` registers the font stages;
:mod:`fontspine.tools` shells out to the font toolchain.
"""

__version__ = "0.1.0"
