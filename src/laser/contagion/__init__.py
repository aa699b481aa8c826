__version__ = "0.1.0"

from .conditional import AgeBandedProbability
from .conditional import ConstantProbability
from .conditional import parse_duration
from .conditional import parse_probability
from .infectiousness import RampCurve
from .infectiousness import ViralLoadCurve
from .model import Model
from .monitor import PersonMonitor
from .policy import DiseasePolicy
from .progression import ProgressionStateMachine
from .progression import TransitionRule
from .scheduler import EventScheduler
from .shared import DiseaseState
from .shared import Phase
from .transmission import AreaTransmission
from .transmission import DistanceTransmission
from .transmission import Location
from .transmission import LocationType

__all__ = [
    "AgeBandedProbability",
    "AreaTransmission",
    "ConstantProbability",
    "DiseasePolicy",
    "DiseaseState",
    "DistanceTransmission",
    "EventScheduler",
    "Location",
    "LocationType",
    "Model",
    "PersonMonitor",
    "Phase",
    "ProgressionStateMachine",
    "RampCurve",
    "TransitionRule",
    "ViralLoadCurve",
    "parse_duration",
    "parse_probability",
]
