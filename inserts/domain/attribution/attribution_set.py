from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from inserts.domain.attribution.click_ids import ATTRIBUTION_FIELDS
from inserts.domain.models import Provenance
from inserts.domain.presence import is_present


@dataclass
class AttributionSlot:
    """
    Назначение:
        Слот одного click id: ноль или одно строковое значение и его источник.
    Инварианты/гарантии:
        - cleared=True означает явное удаление поля из результата.
        - при cleared=True value и provenance равны None.
    """

    value: str | None = None
    provenance: Provenance | None = None
    cleared: bool = False

    @property
    def present(self) -> bool:
        return self.value is not None


@dataclass
class AttributionSet:
    """
    Назначение/ответственность:
        Рабочая структура слияния: по слоту на каждое поле атрибуции.
    Взаимодействия:
        Заполняется AttributionMergeEngine, сужается GoogleAdsExclusivityFilter,
        выгружается в event.properties через assemble_event.
    """

    slots: dict[str, AttributionSlot] = field(
        default_factory=lambda: {name: AttributionSlot() for name in ATTRIBUTION_FIELDS}
    )

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any] | None) -> "AttributionSet":
        """Засевает набор значениями, уже присутствующими в event.properties."""
        result = cls()
        for name in ATTRIBUTION_FIELDS:
            value = (properties or {}).get(name)
            if is_present(value):
                result.set(name, value, Provenance.EVENT)
        return result

    def _slot(self, name: str) -> AttributionSlot:
        if name not in self.slots:
            raise KeyError(f"Unknown attribution field: {name}")
        return self.slots[name]

    def get(self, name: str) -> str | None:
        return self._slot(name).value

    def provenance(self, name: str) -> Provenance | None:
        return self._slot(name).provenance

    def has(self, name: str) -> bool:
        return self._slot(name).present

    def set(self, name: str, value: Any, provenance: Provenance) -> None:
        if not is_present(value):
            return
        self.slots[name] = AttributionSlot(value=str(value), provenance=provenance)

    def clear(self, name: str) -> None:
        self.slots[name] = AttributionSlot(cleared=True)

    def values(self) -> dict[str, str]:
        return {name: slot.value for name, slot in self.slots.items() if slot.value is not None}

    def cleared(self) -> tuple[str, ...]:
        return tuple(name for name, slot in self.slots.items() if slot.cleared)
