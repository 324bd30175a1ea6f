import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class HeapSettings(BaseSettings):
    """
    Настройки, переопределяемые через окружение (префикс HEAP_):

    - HEAP_SEED: seed генератора случайных чисел (пусто - без seed)
    - HEAP_GEN_MAX_DEPTH: предел рекурсии генератора для «Meld Rand»
    - HEAP_LOG_LEVEL: уровень логирования
    """

    seed: Optional[int] = None
    gen_max_depth: int = Field(8, ge=1)
    log_level: str = "INFO"

    class Config:
        env_prefix = "HEAP_"
        case_sensitive = False
        extra = "ignore"

    @field_validator('seed', mode='before')
    @classmethod
    def empty_seed_is_none(cls, v):
        """HEAP_SEED= (пустая строка) означает «без seed»"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def known_log_level(cls, v):
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v!r}")
        return level


@lru_cache()
def get_settings() -> HeapSettings:
    return HeapSettings()


# Размеры окна
WIDTH = 900
HEIGHT = 640

# Цвета (RGB)
BG_COLOR = (30, 30, 40)
NODE_COLOR = (100, 180, 255)
EDGE_COLOR = (90, 90, 110)
TEXT_COLOR = (255, 255, 255)
RANK_COLOR = (170, 170, 200)

# Цвета UI
PANEL_BG = (45, 45, 60)
BTN_BG = (70, 90, 120)
BTN_BG_HOVER = (90, 120, 160)
BTN_BG_DISABLED = (60, 60, 80)
INPUT_BG = (35, 35, 50)
ACCENT_OK = (120, 255, 120)
ACCENT_BAD = (255, 120, 120)

# Цвета анимаций
COMPARE_COLOR = (255, 200, 80)
SWAP_COLOR = (255, 120, 120)
LINK_COLOR = (100, 255, 180)

# Геометрия
PANEL_H = 120  # высота верхней панели
NODE_RADIUS = 16
MAX_DRAW_DEPTH = 7  # глубже - только счётчик скрытых узлов

# Анимации
ANIM_COMPARE_MS = 140
ANIM_SWAP_MS = 240
ANIM_LINK_MS = 180
ANIM_QUEUE_LIMIT = 64

# Частота кадров
FPS = 60

# Главный цикл: после стольких подряд ошибок кадра - аварийный выход
MAX_CONSECUTIVE_ERRORS = 5

# Ввод с клавиатуры
INPUT_MIN = -10_000
INPUT_MAX = 10_000

# Глубина истории для Undo
HISTORY_LIMIT = 100

# Переопределяемое через окружение
_env = get_settings()
RANDOM_SEED = _env.seed
GEN_MAX_DEPTH = _env.gen_max_depth
LOG_LEVEL = _env.log_level
