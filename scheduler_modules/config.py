import os


def _env(name, default):
    return os.environ.get(name, default)


def _env_int(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return int(value)


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# ==================== CONFIGURATION CLASSES ====================
class DatabaseConfig:
    DB_HOST = _env('TIMETABLE_DB_HOST', 'localhost')
    DB_PORT = _env_int('TIMETABLE_DB_PORT', 3306)
    DB_USER = _env('TIMETABLE_DB_USER', 'root')
    DB_PASSWORD = _env('TIMETABLE_DB_PASSWORD', '')
    DB_NAME = _env('TIMETABLE_DB_NAME', 'timetable')


class SchedulerConfig:
    MAX_HOURS_PER_WEEK = _env_int('TIMETABLE_MAX_HOURS_PER_WEEK', 36)
    MAX_HOURS_PER_DAY = _env_int('TIMETABLE_MAX_HOURS_PER_DAY', 8)
    TEACHING_ROLE = _env('TIMETABLE_TEACHING_ROLE', 'instructor')
    DEFAULT_SEMESTER = _env_int('TIMETABLE_DEFAULT_SEMESTER', 1)
    DEFAULT_ACADEMIC_YEAR = _env('TIMETABLE_DEFAULT_ACADEMIC_YEAR', '2024-2025')
    # None means a fresh entropy-seeded shuffle on every run
    SCHEDULER_SEED = _env_int('TIMETABLE_SEED', None)
    MOVE_CHECKS_SECTION_CONFLICTS = _env_bool('TIMETABLE_MOVE_CHECKS_SECTION', False)


class AppConfig(DatabaseConfig, SchedulerConfig):
    SECRET_KEY = _env('TIMETABLE_SECRET_KEY', 'change-me')
    STORE_BACKEND = _env('TIMETABLE_STORE', 'mysql')
    # JSON catalog for the memory backend
    CATALOG_FILE = _env('TIMETABLE_CATALOG_FILE', None)
    LOG_LEVEL = _env('TIMETABLE_LOG_LEVEL', 'INFO')
    JSON_SORT_KEYS = False


def db_config_from(config):
    """Build mysql.connector keyword arguments from a Flask config mapping."""
    return {
        'host': config.get('DB_HOST', DatabaseConfig.DB_HOST),
        'port': config.get('DB_PORT', DatabaseConfig.DB_PORT),
        'user': config.get('DB_USER', DatabaseConfig.DB_USER),
        'password': config.get('DB_PASSWORD', DatabaseConfig.DB_PASSWORD),
        'database': config.get('DB_NAME', DatabaseConfig.DB_NAME),
    }
