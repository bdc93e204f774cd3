"""
Утилита для замера времени выполнения фаз выгрузки.

Точность замера: миллисекунды с 4 знаками после запятой.

    timer = PerformanceTimer(show_metrics=True)

    with timer.measure("query"):
        cursor.execute(sql)
    # Результат будет залогирован при выходе из блока

Замеры отображаются в логах ТОЛЬКО при show_metrics=True
(SQL_EXPORT_SHOW_PERFORMANCE_METRICS=true). Иначе замеры работают, но ничего
не печатают — итоги можно забрать через get_elapsed() / totals.
"""

import time
from contextlib import contextmanager
from typing import Dict, Optional

from utils.logger import logger


class PerformanceTimer:
    """
    Замер времени выполнения участков кода.

    Args:
        show_metrics: Выводить ли замеры в лог
    """

    def __init__(self, show_metrics: bool = False):
        self.show_metrics = show_metrics
        self._timers: Dict[str, float] = {}
        # Итоги завершённых замеров: label -> ms
        self.totals: Dict[str, float] = {}

    # ------------------------------------------------------------------
    def start(self, label: str) -> None:
        self._timers[label] = time.perf_counter()

    # ------------------------------------------------------------------
    def end(self, label: str) -> Optional[float]:
        """
        Окончание замера и вывод результата в лог (если включено).

        Returns:
            Время выполнения в миллисекундах или None если метка не найдена
        """
        if label not in self._timers:
            if self.show_metrics:
                logger.warning(f"Timer '{label}' was not started")
            return None

        elapsed = self.get_elapsed(label)

        if self.show_metrics and elapsed is not None:
            logger.info(f"[{label}] completed in {elapsed:.4f} ms")

        del self._timers[label]
        if elapsed is not None:
            self.totals[label] = elapsed
        return elapsed

    # ------------------------------------------------------------------
    def get_elapsed(self, label: str) -> Optional[float]:
        """Время от start() до «сейчас» в миллисекундах, метка не удаляется."""
        if label not in self._timers:
            return None
        return (time.perf_counter() - self._timers[label]) * 1000

    # ------------------------------------------------------------------
    @contextmanager
    def measure(self, label: str):
        self.start(label)
        try:
            yield
        finally:
            self.end(label)
