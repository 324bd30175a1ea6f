import logging
import random
import time
from dataclasses import dataclass

import pygame

from generators import gen_heap
from heap import (
    EMPTY,
    delete_min,
    find_min,
    get_stats,
    insert,
    is_empty,
    is_valid_heap,
    meld,
    nsmallest,
    size,
)
from settings import *

logger = logging.getLogger(__name__)


@dataclass
class Button:
    rect: pygame.Rect
    label: str
    action: str

    def __getitem__(self, key):
        return getattr(self, key)


class UI:
    """
    Визуализатор персистентной левосторонней кучи.

    Каждое действие порождает новую версию кучи; старые версии лежат
    в self.history и восстанавливаются кнопкой Undo без копирования.
    """

    def __init__(self, screen, heap=EMPTY, rng=None):
        self.screen = screen
        self.heap = heap
        self.history = []
        self.rng = rng if rng is not None else random.Random(RANDOM_SEED)
        self.font = pygame.font.SysFont("consolas", 20)
        self.small = pygame.font.SysFont("consolas", 16)
        self.tiny = pygame.font.SysFont("consolas", 12)

        # кешируемые слои
        self.toolbar_surface = pygame.Surface((WIDTH, PANEL_H), pygame.SRCALPHA)
        self.toolbar_needs_redraw = True
        self.tree_surface = pygame.Surface((WIDTH, HEIGHT), pygame.SRCALPHA)

        # куча, нарисованная в последний раз (сравнение по identity)
        self._last_drawn_heap = None

        # состояние UI
        self.buttons = []
        self.input_rect = pygame.Rect(20, 94, 160, 28)
        self.input_active = False
        self.input_text = ""
        self.insert_btn_rect = None
        self._hover_btn = None
        self._build_buttons()

        # состояние анимаций
        self.anim_queue = []
        self.current_anim = None

        self.temp_message = None
        self.message_end_time = 0
        self.sorting = False
        self.sorted_items = []

    def _build_buttons(self):
        """Раскладывает кнопки тулбара по строкам с переносом."""
        labels = [
            ("Insert Rand", "insert_rand"),
            ("Delete Min", "delete_min"),
            ("Meld Rand", "meld_rand"),
            ("Undo", "undo"),
            ("5 Smallest", "nsmallest"),
            ("Stop Sort" if getattr(self, "sorting", False) else "Sort All", "sort_all"),
            ("Stats", "show_stats"),
            ("Reset", "reset"),
        ]

        self.buttons.clear()

        START_X = 20
        START_Y = 12
        PADDING_X = 12
        PADDING_Y = 6
        SPACING = 10

        max_width = max(100, self.toolbar_surface.get_width() - 40)

        _, sample_text_h = self.font.size("Sample")
        button_height = sample_text_h + PADDING_Y * 2
        row_height = button_height + 5

        x = START_X
        y = START_Y
        current_width = 0

        for label, action in labels:
            text_w, _ = self.font.size(label)
            width = min(max(40, text_w + PADDING_X * 2), max_width)

            # перенос строки
            if current_width + width > max_width and current_width > 0:
                y += row_height
                x = START_X
                current_width = 0

            self.buttons.append(Button(pygame.Rect(x, y, width, button_height), label, action))
            x += width + SPACING
            current_width += width + SPACING

        # Поле ввода - под последней строкой кнопок
        self.input_rect = pygame.Rect(START_X, y + row_height + 10, 160, 28)
        self.toolbar_needs_redraw = True

    def handle_event(self, event):
        if event.type == pygame.MOUSEMOTION:
            new_hover = None
            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    new_hover = btn
                    break

            if new_hover is not self._hover_btn:
                self._hover_btn = new_hover
                self.toolbar_needs_redraw = True

        elif event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", None) == 1:
            # Кнопка Insert рядом с полем ввода
            if self.insert_btn_rect is not None and self.insert_btn_rect.collidepoint(event.pos):
                if self.input_text:
                    self._insert_from_input()
                self.toolbar_needs_redraw = True
                return

            was_active = self.input_active
            self.input_active = bool(self.input_rect.collidepoint(event.pos))
            if self.input_active != was_active:
                self.toolbar_needs_redraw = True

            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    self._run_action(btn.action)
                    return

        elif event.type == pygame.KEYDOWN:
            if self.input_active:
                self._handle_text_input(event)
            else:
                self._handle_shortcuts(event)

    def _handle_shortcuts(self, event):
        keymap = {
            pygame.K_i: "insert_rand",
            pygame.K_d: "delete_min",
            pygame.K_m: "meld_rand",
            pygame.K_u: "undo",
            pygame.K_l: "nsmallest",
            pygame.K_s: "sort_all",
            pygame.K_t: "show_stats",
            pygame.K_r: "reset",
        }
        action = keymap.get(event.key)
        if action:
            self._run_action(action)

    def _handle_text_input(self, event):
        if event.key == pygame.K_RETURN:
            self._insert_from_input()
        elif event.key == pygame.K_BACKSPACE:
            self.input_text = self.input_text[:-1]
        elif event.key == pygame.K_ESCAPE:
            self.input_active = False
        else:
            ch = event.unicode
            if (ch.isdigit() or (ch == "-" and not self.input_text)) and len(self.input_text) < 6:
                self.input_text += ch

        self.toolbar_needs_redraw = True

    # ---------- ACTIONS ----------

    def _run_action(self, action: str):
        """Выполняет действие тулбара; ошибки превращаются в сообщение на экране."""
        handlers = {
            "insert_rand": self._run_insert_rand,
            "delete_min": self._run_delete_min,
            "meld_rand": self._run_meld_rand,
            "undo": self._run_undo,
            "nsmallest": self._run_nsmallest,
            "sort_all": self._run_sort_all,
            "show_stats": self._show_stats,
            "reset": self._run_reset,
        }
        handler = handlers.get(action)
        if handler is None:
            self._show_temp_message(f"Unknown action: {action}")
            return

        logger.debug("Running action %s on heap of size %d", action, size(self.heap))
        try:
            handler()
        except Exception as e:
            logger.warning("Action '%s' failed: %s", action, e, exc_info=True)
            self._show_temp_message(f"{action} failed: {e}")

        self._build_buttons()

    def _remember(self):
        self.history.append(self.heap)
        if len(self.history) > HISTORY_LIMIT:
            del self.history[0]

    def _apply(self, new_heap):
        """Делает new_heap текущей версией, сохраняя предыдущую для Undo."""
        self._remember()
        self.heap = new_heap

    def _run_insert_rand(self):
        v = self.rng.randint(1, 99)
        self._apply(insert(v, self.heap, observer=self._on_heap_event))

    def _run_delete_min(self):
        if is_empty(self.heap):
            self._show_temp_message("Heap is empty")
            return
        v = find_min(self.heap)
        self._apply(delete_min(self.heap, observer=self._on_heap_event))
        self._show_temp_message(f"Deleted min: {v}")

    def _run_meld_rand(self):
        other = gen_heap(self.rng, GEN_MAX_DEPTH, low=1, high=99)
        self._apply(meld(self.heap, other, observer=self._on_heap_event))
        self._show_temp_message(f"Melded {size(other)} items")

    def _run_undo(self):
        if not self.history:
            self._show_temp_message("Nothing to undo")
            return
        self.sorting = False
        self.heap = self.history.pop()

    def _run_nsmallest(self):
        items = nsmallest(self.heap, 5)
        self._show_temp_message(f"5 smallest: {items}")

    def _run_sort_all(self):
        """Запускает/останавливает пошаговое извлечение минимумов."""
        if self.sorting:
            self.sorting = False
            self._show_temp_message("Sorting stopped")
            return

        # Одна запись в истории на всю сортировку: Undo вернёт исходную кучу
        self._remember()
        self.sorting = True
        self.sorted_items = []
        self._show_temp_message("Sorting started - click again to stop")

    def _run_reset(self):
        self._apply(EMPTY)
        self.sorting = False
        self.sorted_items = []

    def _show_stats(self):
        stats = get_stats(self.heap)
        messages = [
            f"Size: {stats['size']}",
            f"Depth: {stats['depth']}",
            f"Rank: {stats['rank']}",
            f"Min: {stats['min']}",
            f"Valid: {stats['is_valid']}",
            f"Versions: {len(self.history) + 1}",
        ]
        self._show_temp_message("\n".join(messages))

    def _show_temp_message(self, message: str, duration: float = 3.0):
        self.temp_message = message
        self.message_end_time = time.perf_counter() + duration

    def _insert_from_input(self):
        try:
            v = int(self.input_text)
        except ValueError:
            self._show_temp_message("Invalid number")
        else:
            v = max(INPUT_MIN, min(INPUT_MAX, v))
            self._apply(insert(v, self.heap, observer=self._on_heap_event))
        self.input_text = ""
        self.input_active = False

    def _is_enabled(self, btn) -> bool:
        if btn["action"] in ("delete_min", "nsmallest") and is_empty(self.heap):
            return False
        if btn["action"] == "sort_all" and is_empty(self.heap) and not self.sorting:
            return False
        if btn["action"] == "undo" and not self.history:
            return False
        return True

    def _on_heap_event(self, event: str, payload: dict):
        mapping = {
            "compare": (ANIM_COMPARE_MS, COMPARE_COLOR, ("a", "b")),
            "swap": (ANIM_SWAP_MS, SWAP_COLOR, ("value",)),
            "link": (ANIM_LINK_MS, LINK_COLOR, ("value",)),
        }
        if event not in mapping or len(self.anim_queue) >= ANIM_QUEUE_LIMIT:
            return

        ms, color, keys = mapping[event]
        self.anim_queue.append({
            "type": event,
            "dur": ms / 1000.0,
            "color": color,
            "values": {payload[k] for k in keys if k in payload},
        })

    # ---------- RENDERING ----------

    def draw(self):
        """Рендер кадра: шаг сортировки, тулбар, дерево, текстовые оверлеи."""
        if self.sorting and not self.anim_queue and not self.current_anim:
            self._sort_step()

        if self.toolbar_needs_redraw:
            self._redraw_toolbar()

        self._redraw_tree_if_needed()

        self.screen.blit(self.tree_surface, (0, 0))
        self.screen.blit(self.toolbar_surface, (0, 0))

        for fn in (self._draw_info_text, self._draw_temp_message, self._draw_sort_progress):
            try:
                fn()
            except Exception as draw_err:
                # одна надпись не должна ронять весь кадр
                logger.warning("%s failed: %s", fn.__name__, draw_err)

    def _sort_step(self):
        if is_empty(self.heap):
            self.sorting = False
            self._show_temp_message(f"Sorting complete! Sorted: {self.sorted_items}")
            self._build_buttons()
            return

        self.sorted_items.append(find_min(self.heap))
        self.heap = delete_min(self.heap, observer=self._on_heap_event)

    def _draw_temp_message(self):
        if self.temp_message and time.perf_counter() < self.message_end_time:
            lines = self.temp_message.split('\n')
            y = HEIGHT - 150 - 25 * max(0, len(lines) - 3)

            max_width = max(self.font.size(line)[0] for line in lines)
            bg_rect = pygame.Rect(20, y - 5, max_width + 20, len(lines) * 25 + 10)
            pygame.draw.rect(self.screen, (40, 40, 60), bg_rect, border_radius=5)
            pygame.draw.rect(self.screen, (100, 100, 150), bg_rect, 2, border_radius=5)

            for line in lines:
                text = self.font.render(line, True, (220, 220, 100))
                self.screen.blit(text, (30, y))
                y += 25

    def _draw_sort_progress(self):
        if not self.sorting:
            return
        remaining = size(self.heap)
        total = len(self.sorted_items) + remaining
        progress = len(self.sorted_items) / total if total else 0

        text = self.font.render(f"Sorting... {len(self.sorted_items)} items extracted", True, (255, 200, 100))
        self.screen.blit(text, (WIDTH - 330, HEIGHT - 100))

        bar_rect = pygame.Rect(WIDTH - 330, HEIGHT - 70, 310, 20)
        pygame.draw.rect(self.screen, (60, 60, 80), bar_rect, border_radius=3)
        fill_width = int(310 * progress)
        if fill_width > 0:
            fill_rect = pygame.Rect(bar_rect.x, bar_rect.y, fill_width, 20)
            pygame.draw.rect(self.screen, (100, 200, 100), fill_rect, border_radius=3)

    def _draw_button(self, surf, rect, label, bg):
        pygame.draw.rect(surf, bg, rect, border_radius=6)
        text = self.font.render(label, True, TEXT_COLOR)
        surf.blit(text, text.get_rect(center=rect.center))

    def _button_bg(self, btn):
        if not self._is_enabled(btn):
            return BTN_BG_DISABLED
        return BTN_BG_HOVER if self._hover_btn is btn else BTN_BG

    def _redraw_toolbar(self):
        surf = self.toolbar_surface
        surf.fill(PANEL_BG)

        for btn in self.buttons:
            self._draw_button(surf, btn.rect, btn.label, self._button_bg(btn))

        # поле ввода
        field_bg = (160, 160, 160) if self.input_active else INPUT_BG
        pygame.draw.rect(surf, field_bg, self.input_rect, border_radius=6)

        if self.input_text:
            txt = self.small.render(self.input_text, True, (200, 200, 200))
        else:
            txt = self.small.render("Type number…", True, (130, 130, 150))
        surf.blit(txt, txt.get_rect(midleft=(self.input_rect.x + 8, self.input_rect.centery)))

        # кнопка Insert на одной линии с полем ввода
        self.insert_btn_rect = self.input_rect.move(self.input_rect.width + 8, 0)
        self.insert_btn_rect.width = 90
        self._draw_button(surf, self.insert_btn_rect, "Insert",
                          BTN_BG if self.input_text else BTN_BG_DISABLED)

        self.toolbar_needs_redraw = False

    def _redraw_tree_if_needed(self):
        before = self.current_anim
        self._advance_animation()

        anim_active = bool(self.current_anim or self.anim_queue)
        heap_changed = self.heap is not self._last_drawn_heap

        if heap_changed or anim_active or before is not self.current_anim:
            self._draw_tree_surface()

        self._last_drawn_heap = self.heap

    def _layout(self):
        """
        Раскладка узлов: x - порядковый номер при симметричном обходе,
        y - глубина. Узлы глубже MAX_DRAW_DEPTH не рисуются.

        Returns:
            (список (node, depth) в симметричном порядке, число скрытых узлов)
        """
        order = []
        hidden = 0
        stack = []
        node, level = self.heap, 0
        while True:
            while node is not EMPTY:
                if level > MAX_DRAW_DEPTH:
                    hidden += size(node)
                    break
                stack.append((node, level))
                node, level = node.left, level + 1
            if not stack:
                break
            node, level = stack.pop()
            order.append((node, level))
            node, level = node.right, level + 1
        return order, hidden

    def _draw_tree_surface(self):
        surf = self.tree_surface
        surf.fill((0, 0, 0, 0))

        if is_empty(self.heap):
            msg = self.font.render(
                "Heap is empty. Use Insert or type a number ↑",
                True,
                (180, 180, 200),
            )
            surf.blit(
                msg,
                (WIDTH // 2 - msg.get_width() // 2,
                 HEIGHT // 2 - msg.get_height() // 2),
            )
            return

        order, hidden = self._layout()

        top = PANEL_H + NODE_RADIUS + 10
        available_h = HEIGHT - top - 130
        levels = max(level for _, level in order) + 1
        level_h = min(70, available_h // max(1, levels))
        slot_w = (WIDTH - 40) / len(order)

        positions = {}
        for i, (node, level) in enumerate(order):
            positions[id(node)] = (int(20 + slot_w * (i + 0.5)), top + level * level_h)

        # рёбра
        for node, _ in order:
            x, y = positions[id(node)]
            for child in (node.left, node.right):
                if id(child) in positions:
                    pygame.draw.line(surf, EDGE_COLOR, (x, y), positions[id(child)], 2)

        highlight = self.current_anim["values"] if self.current_anim else set()
        color = self.current_anim["color"] if self.current_anim else NODE_COLOR
        radius = min(NODE_RADIUS, max(4, int(slot_w // 2) - 1))

        # узлы
        for node, _ in order:
            x, y = positions[id(node)]
            fill = color if node.value in highlight else NODE_COLOR
            pygame.draw.circle(surf, fill, (x, y), radius)

            label = self.small.render(str(node.value), True, TEXT_COLOR)
            surf.blit(label, (x - label.get_width() // 2, y - label.get_height() // 2))

            rank_label = self.tiny.render(f"r{node.rank}", True, RANK_COLOR)
            surf.blit(rank_label, (x + radius - 2, y - radius - 6))

        if hidden:
            more = self.small.render(f"... and {hidden} deeper nodes", True, RANK_COLOR)
            surf.blit(more, (20, top + levels * level_h))

    def _advance_animation(self):
        now = time.perf_counter()

        if self.current_anim and self._anim_progress(self.current_anim) >= 1.0:
            self.current_anim = None

        if not self.current_anim and self.anim_queue:
            item = self.anim_queue.pop(0)
            item["t0"] = now
            self.current_anim = item

    @staticmethod
    def _anim_progress(anim):
        span = anim["dur"]
        if span <= 0:
            return 1.0
        return min(1.0, (time.perf_counter() - anim["t0"]) / span)

    def _draw_info_text(self):
        info_lines = [
            "[I] InsertRand  [D] DeleteMin  [M] MeldRand  [U] Undo",
            "[L] 5 Smallest  [S] Sort  [T] Stats  [R] Reset"
        ]

        y_pos = HEIGHT - 70
        for line in info_lines:
            info = self.font.render(line, True, TEXT_COLOR)
            self.screen.blit(info, (20, y_pos))
            y_pos += 25

        status_ok = is_valid_heap(self.heap)
        status_text = "HEAP OK" if status_ok else "HEAP BROKEN"
        status_color = ACCENT_OK if status_ok else ACCENT_BAD
        status = self.font.render(status_text, True, status_color)
        self.screen.blit(status, (WIDTH - status.get_width() - 20, HEIGHT - 45))
