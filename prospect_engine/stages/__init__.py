# Classification stages module
from .stage0_deterministic import DeterministicStage
from .stage1_search import SearchGroundedStage, title_similarity
from .stage2_llm_batch import BatchLLMStage
from .stage3_fail_open import FailOpenStage
