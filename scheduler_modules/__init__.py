from .auto_scheduler import auto_scheduler_bp
from .schedules import schedules_bp
from .conflicts import conflicts_bp

__all__ = [
    'auto_scheduler_bp', 'schedules_bp', 'conflicts_bp',
]
