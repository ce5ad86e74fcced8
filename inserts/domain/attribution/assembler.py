from __future__ import annotations

from typing import Any, Mapping

from inserts.domain.attribution.merge import ReconciledProfile


def _copy_mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def assemble_event(event: dict[str, Any], reconciled: ReconciledProfile) -> dict[str, Any]:
    """
    Назначение:
        Накладывает согласованные context, context.traits и properties на исходное событие.

    Контракт:
        - Поверхностный merge по каждому ключу верхнего уровня: новые значения
          перезаписывают одноимённые, прочие ключи события сохраняются.
        - Очищенные click id и трейты удаляются из события.
        - Событие изменяется на месте и возвращается.
    """
    context = _copy_mapping(event.get("context"))
    context.update(reconciled.context)
    traits = _copy_mapping(context.get("traits"))
    traits.update(reconciled.traits)
    for name in reconciled.cleared_traits:
        traits.pop(name, None)
    context["traits"] = traits

    properties = _copy_mapping(event.get("properties"))
    properties.update(reconciled.properties)
    properties.update(reconciled.attribution.values())
    for name in reconciled.attribution.cleared():
        properties.pop(name, None)

    event["context"] = context
    event["properties"] = properties
    return event
