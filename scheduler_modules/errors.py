class SchedulerError(Exception):
    """Base class for every error raised by the timetable generator."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class PreflightError(SchedulerError):
    """The catalog is missing a category the run cannot do without."""

    status_code = 400


class CatalogError(SchedulerError):
    """The catalog store could not be read."""

    status_code = 503


class PersistenceError(SchedulerError):
    """The bulk write of a run failed; nothing from the run was committed."""

    status_code = 500


class LoadError(SchedulerError):
    """A block was committed to an instructor's load without being checked."""


class AssignmentNotFound(SchedulerError):
    status_code = 404
