"""Bill-of-materials existence checks.

Known limitations, kept as-is until product rules say otherwise:
- a component id is accepted if *any* good has it; archived goods stay referenceable
- no self-reference check and no cycle detection across BOM levels
"""

import asyncio
from typing import Iterable, List

from modules.goods.repository import GoodsRepository
from modules.goods.schemas import ComponentRef


async def resolve_components(repository: GoodsRepository, components: Iterable[ComponentRef]) -> List[int]:
    """Return the referenced ids that do not exist, in first-appearance order.

    One lookup per distinct id, all issued concurrently. Repository errors
    propagate; only a miss marks an id invalid.
    """
    ids = list(dict.fromkeys(component.id for component in components))
    if not ids:
        return []

    found = await asyncio.gather(*(repository.find_by_id(component_id) for component_id in ids))
    return [component_id for component_id, good in zip(ids, found) if good is None]
