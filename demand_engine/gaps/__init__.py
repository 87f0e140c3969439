# Gaps module
from .miner import ContentGapMiner, mine_cooccurrences, score_gap_candidate
from .models import CooccurrenceStats, GapReport, IngredientGap
