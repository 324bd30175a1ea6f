"""
heap.py - персистентная левосторонняя куча (leftist heap).

Куча - неизменяемое бинарное дерево. Любая «модифицирующая» операция
возвращает новую кучу, разделяя нетронутые поддеревья со входными.
Это даёт бесплатный undo в визуализаторе и безопасное совместное
использование одной кучи из нескольких мест.

Публичный API - набор свободных функций:

    empty, is_empty, insert, find_min, delete_min, meld

плюс read-only помощники для отладки и визуализации.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

Observer = Callable[[str, Dict[str, Any]], None]

logger = logging.getLogger(__name__)


class EmptyHeapError(IndexError):
    """Операция требует непустую кучу (find_min / delete_min)."""


class EmptyHeap:
    """
    Пустая куча. Существует ровно один экземпляр - EMPTY.
    """

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<LeftistHeap []>"


EMPTY = EmptyHeap()


@dataclass(frozen=True, eq=False, repr=False)
class Node(Generic[T]):
    """
    Узел левосторонней кучи.

    Attributes:
        value: Элемент в корне поддерева (не больше всех элементов детей).
        left: Левое поддерево, rank(left) >= rank(right).
        right: Правое поддерево.
        rank: Длина правого «хребта» до пустой кучи.

    Примечания:
        - Левый хребет может иметь глубину O(n), поэтому сравнение,
          хэш и repr реализованы через явный стек, а не рекурсию.
    """

    value: T
    left: "Heap"
    right: "Heap"
    rank: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return _structurally_equal(self, other)

    def __hash__(self) -> int:
        return hash(tuple(_shape(self)))

    def __repr__(self) -> str:
        return f"<LeftistHeap {to_list(self)}>"


Heap = Union[EmptyHeap, Node[T]]


# ---------- PUBLIC API ----------

def empty() -> Heap:
    """Возвращает каноническую пустую кучу."""
    return EMPTY


def is_empty(h: Heap) -> bool:
    """True, если куча пуста."""
    return h is EMPTY


def find_min(h: "Heap[T]") -> T:
    """
    Возвращает минимальный элемент (корень) кучи.

    Raises:
        EmptyHeapError: Если куча пуста.
    """
    if h is EMPTY:
        raise EmptyHeapError("find_min() on an empty heap")
    return h.value


def insert(x: T, h: "Heap[T]", *, observer: Optional[Observer] = None) -> "Heap[T]":
    """
    Возвращает новую кучу со всеми элементами h и элементом x.

    Вставка - это слияние с одноэлементной кучей.
    """
    return meld(h, Node(x, EMPTY, EMPTY, 1), observer=observer)


def delete_min(h: "Heap[T]", *, observer: Optional[Observer] = None) -> "Heap[T]":
    """
    Возвращает кучу без одного вхождения минимума.

    Корень отбрасывается, его поддеревья сливаются.

    Raises:
        EmptyHeapError: Если куча пуста.
    """
    if h is EMPTY:
        raise EmptyHeapError("delete_min() on an empty heap")
    return meld(h.left, h.right, observer=observer)


def meld(h1: "Heap[T]", h2: "Heap[T]", *, observer: Optional[Observer] = None) -> "Heap[T]":
    """
    Сливает две кучи в одну (мультимножественное объединение).

    Args:
        h1: Первая куча.
        h2: Вторая куча.
        observer: Колбэк (event, payload) для визуализации шагов слияния:
            'compare', 'swap', 'link'.

    Returns:
        Новая куча. Входные кучи не изменяются.

    Примечания:
        - Рекурсия идёт только по правым хребтам, глубина O(log n1 + log n2).
        - При равенстве корней корнем результата становится корень h1.
    """
    if h1 is EMPTY:
        return h2
    if h2 is EMPTY:
        return h1

    _notify(observer, "compare", a=h1.value, b=h2.value)
    if h2.value < h1.value:
        h1, h2 = h2, h1

    merged = meld(h1.right, h2, observer=observer)
    return _link(h1.value, h1.left, merged, observer)


# ---------- INTERNALS ----------

def _link(value: T, a: "Heap[T]", b: "Heap[T]", observer: Optional[Observer]) -> Node[T]:
    """Строит узел, ставя поддерево с большим рангом налево."""
    if rank(a) >= rank(b):
        left, right = a, b
    else:
        left, right = b, a
        _notify(observer, "swap", value=value)

    node = Node(value, left, right, rank(right) + 1)
    _notify(observer, "link", value=value, rank=node.rank)
    return node


def _notify(observer: Optional[Observer], event: str, **payload: Any) -> None:
    """
    Безопасно вызывает observer, передавая событие и компактный payload.

    Примечания:
        - Значения, repr которых длиннее 200 символов, сокращаются.
        - Исключения в observer подавляются и логируются на уровне debug.
    """
    if not observer:
        return

    def _compact(v: Any) -> Any:
        s = repr(v)
        return s[:200] + "…" if len(s) > 200 else v

    compact_payload = {k: _compact(v) for k, v in payload.items()}

    try:
        observer(event, compact_payload)
    except Exception as e:
        logger.debug(
            "Observer callback failed for event '%s': %s", event, e,
            exc_info=True,
        )


def _iter_nodes(h: Heap) -> Iterator[Tuple[Node, int]]:
    """Обход узлов в прямом порядке (корень, левое, правое) с глубиной."""
    stack: List[Tuple[Heap, int]] = [(h, 0)]
    while stack:
        node, level = stack.pop()
        if node is EMPTY:
            continue
        yield node, level
        stack.append((node.right, level + 1))
        stack.append((node.left, level + 1))


def _structurally_equal(a: Heap, b: Heap) -> bool:
    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        if x is y:
            continue
        if x is EMPTY or y is EMPTY:
            return False
        if x.rank != y.rank or x.value != y.value:
            return False
        stack.append((x.right, y.right))
        stack.append((x.left, y.left))
    return True


def _shape(h: Heap) -> Iterator[Optional[Tuple[Any, int]]]:
    stack: List[Heap] = [h]
    while stack:
        node = stack.pop()
        if node is EMPTY:
            yield None
            continue
        yield node.value, node.rank
        stack.append(node.right)
        stack.append(node.left)


# ---------- READ-ONLY HELPERS ----------

def rank(h: Heap) -> int:
    """Ранг кучи: длина правого хребта, 0 для пустой."""
    return 0 if h is EMPTY else h.rank


def size(h: Heap) -> int:
    """Количество элементов (линейный обход)."""
    return sum(1 for _ in _iter_nodes(h))


def depth(h: Heap) -> int:
    """
    Возвращает высоту дерева.

    Returns:
        Количество уровней, 0 для пустой кучи.
    """
    return max((level + 1 for _, level in _iter_nodes(h)), default=0)


def from_iterable(values: Iterable[T]) -> "Heap[T]":
    """Строит кучу последовательными вставками в пустую."""
    h: "Heap[T]" = EMPTY
    for value in values:
        h = insert(value, h)
    return h


def to_list(h: "Heap[T]") -> List[T]:
    """
    Возвращает элементы кучи в прямом порядке обхода (без гарантии сортировки!).
    """
    return [node.value for node, _ in _iter_nodes(h)]


def iter_sorted(h: "Heap[T]") -> Iterator[T]:
    """
    Итератор по элементам в порядке возрастания.

    В отличие от извлечения из изменяемой кучи, исходная куча остаётся
    нетронутой: каждый шаг порождает новую версию.
    """
    while h is not EMPTY:
        yield h.value
        h = delete_min(h)


def nsmallest(h: "Heap[T]", n: int) -> List[T]:
    """
    Возвращает n наименьших элементов по возрастанию.

    Args:
        h: Куча.
        n: Количество элементов. При n <= 0 возвращается [].
    """
    if n <= 0:
        return []

    result = []
    for value in iter_sorted(h):
        result.append(value)
        if len(result) >= n:
            break
    return result


# ---------- VERIFICATION ----------

def is_valid_heap(h: Heap) -> bool:
    """
    Проверяет инварианты левосторонней кучи.

    Returns:
        True, если для каждого узла:
            - корень не больше корней детей (порядок кучи);
            - rank(left) >= rank(right) (левостороннее свойство);
            - сохранённый ранг равен rank(right) + 1.
    """
    for node, _ in _iter_nodes(h):
        for child in (node.left, node.right):
            if child is not EMPTY and child.value < node.value:
                return False
        if rank(node.left) < rank(node.right):
            return False
        if node.rank != rank(node.right) + 1:
            return False
    return True


# ---------- STATISTICS AND METRICS ----------

def get_stats(h: Heap) -> Dict[str, Any]:
    """
    Возвращает статистику кучи для отладки и мониторинга.
    """
    return {
        "size": size(h),
        "depth": depth(h),
        "rank": rank(h),
        "min": None if h is EMPTY else h.value,
        "is_valid": is_valid_heap(h),
    }


# ---------- VISUALIZATION HELPER ----------

def to_tree_repr(h: Heap, max_depth: int = 4) -> List[str]:
    """
    Генерирует текстовое представление дерева.

    Args:
        h: Куча.
        max_depth: Максимальная глубина для отображения.

    Returns:
        Список строк: по одной на узел, с отступом по глубине
        и меткой L/R для левого/правого ребёнка.
    """
    if h is EMPTY:
        return ["[Empty heap]"]

    result = []
    stack: List[Tuple[Heap, int, str]] = [(h, 0, "")]
    while stack:
        node, level, tag = stack.pop()
        if node is EMPTY:
            continue

        item_str = str(node.value)
        if len(item_str) > 10:
            item_str = item_str[:10] + "..."
        indent = "  " * level
        result.append(f"{indent}{tag}{item_str} (r={node.rank})")

        if level + 1 >= max_depth:
            if node.left is not EMPTY or node.right is not EMPTY:
                result.append(f"{indent}  ...")
            continue

        stack.append((node.right, level + 1, "R: "))
        stack.append((node.left, level + 1, "L: "))

    return result


def print_tree(h: Heap, max_depth: int = 4) -> None:
    """
    Печатает дерево в удобочитаемом формате.
    """
    for line in to_tree_repr(h, max_depth):
        print(line)
