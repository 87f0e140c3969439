# Database module
from .database import Database, TrendPoint
