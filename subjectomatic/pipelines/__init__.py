"""
Public façade for the *pipelines* sub-package.

* **Discovery**
    * :func:`collect_subjects`
    * :class:`SubjectCollector`

* **Binding**
    * :func:`bind_record`, :func:`bind_records`
    * :class:`Invocation`, :class:`BindingResult`

* **Joins**
    * :func:`join_on_subject`, :func:`gather_outputs`

Importing from ``subjectomatic.pipelines`` rather than individual modules
keeps call-sites stable even when underlying filenames change.
"""

from __future__ import annotations

# (1) Collect → (2) Bind → (3) Join.
from .collect import SubjectCollector, collect_subjects
from .binding import bind_record, bind_records
from .join import gather_outputs, join_on_subject
from .types import BindingResult, Invocation, SkippedBinding, UnitResult

__all__: list[str] = [
    "SubjectCollector",
    "collect_subjects",
    "bind_record",
    "bind_records",
    "gather_outputs",
    "join_on_subject",
    "BindingResult",
    "Invocation",
    "SkippedBinding",
    "UnitResult",
]
