# Trends module
from .fetcher import TrendsFetcher, TrendsProvider, aggregate_boosts, boost_from_points
