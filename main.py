"""
main.py - точка входа визуализатора левосторонней кучи.

Модуль настраивает логирование, инициализирует Pygame-окно (с поддержкой
HiDPI для macOS / Retina-дисплеев), создаёт UI поверх пустой персистентной
кучи и запускает основной цикл отрисовки и обработки событий.
"""

import logging
import os
import sys

import pygame

from heap import empty
from settings import *
from ui import UI

logger = logging.getLogger("main")


def main():
    """
    Точка входа приложения.

    Основные задачи:
        1. Настроить логирование по settings.LOG_LEVEL.
        2. Настроить SDL для HiDPI и инициализировать Pygame.
        3. Создать UI поверх пустой кучи.
        4. Крутить главный цикл: события, отрисовка, стабильный FPS.

    Исключения:
        Ошибки одного события логируются и пропускаются. Подряд идущие
        ошибки отрисовки допускаются до MAX_CONSECUTIVE_ERRORS.
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        # --- Retina / HiDPI Fix (macOS + SDL2) ---
        os.environ["SDL_VIDEO_ALLOW_HIGHDPI"] = "1"
        os.environ.pop("SDL_VIDEO_HIGHDPI_DISABLED", None)

        pygame.init()
        logger.info("Pygame initialized")

        try:
            screen = pygame.display.set_mode(
                (WIDTH, HEIGHT),
                pygame.HWSURFACE | pygame.DOUBLEBUF | pygame.RESIZABLE
            )
            pygame.display.set_caption("Leftist Heap Visualizer")
        except pygame.error as e:
            logger.error("Cannot create window: %s", e)
            sys.exit(1)

        info = pygame.display.Info()
        logger.info("Display size: %sx%s, logical size: %sx%s",
                    info.current_w, info.current_h, WIDTH, HEIGHT)
        if RANDOM_SEED is not None:
            logger.info("Using random seed %d", RANDOM_SEED)

        clock = pygame.time.Clock()
        ui = UI(screen, empty())

        running = True
        consecutive_errors = 0

        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                # Ошибка в обработке ОДНОГО события не убивает весь цикл
                try:
                    ui.handle_event(event)
                except Exception as event_error:
                    logger.warning("Event handling failed: %s", event_error, exc_info=True)

            try:
                screen.fill(BG_COLOR)
                ui.draw()
                pygame.display.flip()
            except pygame.error:
                # Обычно это уже серьёзно (потеря контекста, закрытое окно)
                logger.exception("Pygame error while drawing")
                running = False
                continue
            except Exception:
                logger.exception("Frame rendering failed")
                consecutive_errors += 1
                if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                    logger.critical("Too many consecutive render errors (%d), exiting",
                                    consecutive_errors)
                    running = False
                continue
            else:
                consecutive_errors = 0

            clock.tick(FPS)

    except KeyboardInterrupt:
        logger.info("Interrupted by Ctrl+C")

    finally:
        pygame.quit()
        logger.info("Application finished")


if __name__ == "__main__":
    main()
