"""
Plume: Transports - Backoff

Délais exponentiels bornés pour les retries et reconnexions.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Politique de backoff exponentiel.

    Formula: min(initial_delay * (exponential_base ^ attempt), max_delay)
    - Attempt 0: initial_delay
    - Attempt 1: initial_delay * base
    - Attempt 2: initial_delay * base^2 (plafonné à max_delay)
    """

    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    def calculate_delay(self, attempt: int) -> float:
        """
        Calcule le délai avant la tentative suivante.

        Args:
            attempt: Numéro de tentative (0-indexed)

        Returns:
            Délai en secondes
        """
        delay = self.initial_delay * (self.exponential_base ** max(attempt, 0))
        return min(delay, self.max_delay)
