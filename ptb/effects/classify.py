"""
ptb.effects.classify — recover the entity of interest from an effects report.

An engine reports `created` ids without saying which one is "the position" or "the pool".
`EffectClassifier` answers that question with an explicit, ordered hint:

    FirstCreated              → created[0]
    PreferShared              → first created object that is shared, else created[0]
    PreferOwned               → first created object that is not shared, else created[0]
    ByStructuralType(name)    → first created object whose struct name equals `name`

`ByStructuralType` does not fall back: a miss returns None unless the hint (or a
non-strict classifier) allows the first-created fallback, which is then logged as a
warning. With more than one created object that fallback can pick the wrong entity.

Ties always resolve to the earliest id in `created` order, so classification of a given
result is deterministic. A failed result classifies to None.

The classifier reads object metadata through a `lookup(object_id) -> StoredObject | None`
callable, usually `ObjectStore.lookup` after the engine has committed the block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from .. import metrics
from ..config import PtbConfig, get_config
from ..errors import ClassificationError
from ..state.store import StoredObject
from ..types.ids import ObjectId
from ..types.result import ExecutionResult
from ..types.type_tag import struct_name

log = logging.getLogger(__name__)

Lookup = Callable[[ObjectId], Optional[StoredObject]]


# ---- hints ----


@dataclass(frozen=True)
class FirstCreated:
    label = "first_created"


@dataclass(frozen=True)
class PreferShared:
    label = "prefer_shared"


@dataclass(frozen=True)
class PreferOwned:
    label = "prefer_owned"


@dataclass(frozen=True)
class ByStructuralType:
    name: str
    fallback: bool = False

    label = "by_type"

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("structural type name must not be empty")


ClassifyHint = Union[FirstCreated, PreferShared, PreferOwned, ByStructuralType]


# ---- classifier ----


class EffectClassifier:
    def __init__(self, lookup: Lookup, *, strict: bool = True) -> None:
        self._lookup = lookup
        self.strict = strict

    @classmethod
    def from_config(cls, lookup: Lookup, cfg: Optional[PtbConfig] = None) -> "EffectClassifier":
        cfg = cfg or get_config()
        return cls(lookup, strict=cfg.classify.strict)

    def classify(self, result: ExecutionResult, hint: ClassifyHint) -> Optional[ObjectId]:
        """Id of the entity selected by `hint`, or None when nothing qualifies."""
        if not result.success or not result.created:
            self._observe(hint, "not_found")
            return None
        created = result.created

        if isinstance(hint, FirstCreated):
            return self._found(hint, created[0])

        if isinstance(hint, ByStructuralType):
            for oid in created:
                obj = self._lookup(oid)
                if obj is not None and struct_name(obj.type_tag) == hint.name:
                    return self._found(hint, oid)
            if hint.fallback or not self.strict:
                log.warning(
                    "no created object of type %s among %d; falling back to first created %s",
                    hint.name, len(created), created[0].short(),
                )
                self._observe(hint, "fallback")
                return created[0]
            self._observe(hint, "not_found")
            return None

        if isinstance(hint, (PreferShared, PreferOwned)):
            want_shared = isinstance(hint, PreferShared)
            for oid in created:
                obj = self._lookup(oid)
                if obj is not None and obj.is_shared == want_shared:
                    return self._found(hint, oid)
            log.debug("%s matched nothing; using first created %s", hint.label, created[0].short())
            self._observe(hint, "fallback")
            return created[0]

        raise TypeError(f"unknown classify hint: {hint!r}")

    def expect(self, result: ExecutionResult, hint: ClassifyHint) -> ObjectId:
        """Like `classify` but raises ClassificationError instead of returning None."""
        oid = self.classify(result, hint)
        if oid is None:
            raise ClassificationError(
                f"no created object satisfies {hint!r} ({len(result.created)} created)",
                hint=repr(hint),
            )
        return oid

    def classify_all(self, result: ExecutionResult) -> Dict[ObjectId, Tuple[str, str]]:
        """{id: (type tag, owner)} for every created object, for diagnostics."""
        out: Dict[ObjectId, Tuple[str, str]] = {}
        for oid in result.created:
            obj = self._lookup(oid)
            if obj is None:
                out[oid] = ("unknown", "unknown")
            else:
                out[oid] = (str(obj.type_tag) if obj.type_tag is not None else "unknown", str(obj.owner))
        return out

    def _found(self, hint: ClassifyHint, oid: ObjectId) -> ObjectId:
        self._observe(hint, "match")
        return oid

    @staticmethod
    def _observe(hint: ClassifyHint, outcome: str) -> None:
        metrics.observe_classify(hint=getattr(hint, "label", "unknown"), outcome=outcome)


__all__ = [
    "FirstCreated",
    "PreferShared",
    "PreferOwned",
    "ByStructuralType",
    "ClassifyHint",
    "Lookup",
    "EffectClassifier",
]
