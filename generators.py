"""
generators.py - генератор случайных куч для проверок и кнопки «Meld Rand».

Куча строится так же, как в property-тестах: либо пустая, либо вставка
случайного целого в (пустую | рекурсивно сгенерированную) кучу.
Глубина рекурсии ограничена явно, поэтому генерация всегда завершается.
"""

import random
from typing import Iterator, Optional

from heap import EMPTY, Heap, insert

INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1

DEFAULT_MAX_DEPTH = 8


def gen_heap(
    rng: random.Random,
    max_depth: int = DEFAULT_MAX_DEPTH,
    low: int = INT_MIN,
    high: int = INT_MAX,
) -> Heap:
    """
    Генерирует одну случайную кучу.

    Args:
        rng: Источник случайности (для воспроизводимости - с seed).
        max_depth: Предел рекурсии; по его достижении возвращается пустая куча.
        low: Нижняя граница значений (включительно).
        high: Верхняя граница значений (включительно).

    Returns:
        Куча из не более чем max_depth элементов.
    """
    if max_depth <= 0 or rng.random() < 0.5:
        return EMPTY

    x = rng.randint(low, high)
    if rng.random() < 0.5:
        base = EMPTY
    else:
        base = gen_heap(rng, max_depth - 1, low, high)
    return insert(x, base)


def heaps(
    seed: Optional[int] = None,
    count: Optional[int] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    low: int = INT_MIN,
    high: int = INT_MAX,
) -> Iterator[Heap]:
    """
    Ленивая последовательность случайных куч.

    Args:
        seed: Seed генератора. Один и тот же seed даёт ту же последовательность.
        count: Сколько куч выдать; None - бесконечно.
    """
    rng = random.Random(seed)
    produced = 0
    while count is None or produced < count:
        yield gen_heap(rng, max_depth, low, high)
        produced += 1
