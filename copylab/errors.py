"""Exception hierarchy shared by the experiment and refiner packages."""


class CopyLabError(Exception):
    """Base class for all copylab errors."""


class ExperimentNotFoundError(CopyLabError, LookupError):
    def __init__(self, experiment_id: str):
        super().__init__(f"Experiment with ID {experiment_id} not found")
        self.experiment_id = experiment_id


class DuplicateExperimentError(CopyLabError, ValueError):
    def __init__(self, experiment_id: str):
        super().__init__(f"Experiment with ID {experiment_id} already exists")
        self.experiment_id = experiment_id


class RuleSourceError(CopyLabError):
    """A rule file could not be read, decoded or validated."""
