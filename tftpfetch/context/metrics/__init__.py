from .base import Metrics
