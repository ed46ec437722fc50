"""
subjectomatic package initialisation.

1. **Expose the version string**
   ``subjectomatic.__version__`` is resolved at import-time from the installed
   distribution metadata so that all runtime contexts (install, editable)
   surface the same canonical value.

2. **Re-export the public entry points**
   :func:`load_config` and :func:`collect_subjects` are re-exported at the
   top level so call-sites can simply do::

       from subjectomatic import load_config, collect_subjects

       cfg = load_config(dataset_root="/data/study")
       result = collect_subjects("/data/study", cfg)
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("subjectomatic")
except PackageNotFoundError:
    # Source tree without an installed wheel.
    __version__ = "0.0.0"

from .config import load_config  # noqa: E402
from .pipelines.collect import collect_subjects  # noqa: E402

__all__: list[str] = ["load_config", "collect_subjects", "__version__"]
