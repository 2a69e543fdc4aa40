"""Static catalog of prediction models and fallback mapping.

Loaded once at process start. Pricing is USD per million tokens as published
by each vendor.
"""

from typing import Dict, List, Optional, Tuple

from tipster.providers.base import ModelPricing, ModelSpec

TOGETHER = "together"
SYNTHETIC = "synthetic"

# (id, vendor model name, display name, tier, prompt $/1M, completion $/1M, premium)
_TOGETHER_MODELS: List[Tuple[str, str, str, str, float, float, bool]] = [
    # DeepSeek
    ("deepseek-v3.1", "deepseek-ai/DeepSeek-V3.1", "DeepSeek V3.1", "budget", 0.60, 1.25, False),
    ("deepseek-r1", "deepseek-ai/DeepSeek-R1", "DeepSeek R1 (Reasoning)", "premium", 3.00, 7.00, True),
    # Moonshot
    ("kimi-k2-0905", "moonshotai/Kimi-K2-Instruct-0905", "Kimi K2 0905 (Moonshot)", "budget", 1.00, 3.00, False),
    ("kimi-k2-instruct", "moonshotai/Kimi-K2-Instruct", "Kimi K2 Instruct (Moonshot)", "budget", 1.00, 3.00, False),
    # Alibaba
    ("qwen3-235b-thinking", "Qwen/Qwen3-235B-A22B-Thinking-2507", "Qwen3 235B Thinking (Alibaba)", "premium", 0.65, 3.00, True),
    ("qwen3-coder-480b", "Qwen/Qwen3-Coder-480B-A35B-Instruct-FP8", "Qwen3 Coder 480B (Alibaba)", "premium", 2.00, 2.00, True),
    ("qwen3-next-80b-instruct", "Qwen/Qwen3-Next-80B-A3B-Instruct", "Qwen3 Next 80B (Alibaba)", "budget", 0.15, 1.50, False),
    ("qwen3-next-80b-thinking", "Qwen/Qwen3-Next-80B-A3B-Thinking", "Qwen3 Next 80B Thinking (Alibaba)", "budget", 0.15, 1.50, False),
    ("qwen2.5-7b-turbo", "Qwen/Qwen2.5-7B-Instruct-Turbo", "Qwen 2.5 7B Turbo (Alibaba)", "budget", 0.30, 0.30, False),
    ("qwen2.5-72b-turbo", "Qwen/Qwen2.5-72B-Instruct-Turbo", "Qwen 2.5 72B Turbo (Alibaba)", "budget", 1.20, 1.20, False),
    # Meta
    ("llama-4-maverick", "meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8", "Llama 4 Maverick (Meta)", "premium", 0.27, 0.85, False),
    ("llama-4-scout", "meta-llama/Llama-4-Scout-17B-16E-Instruct", "Llama 4 Scout (Meta)", "budget", 0.18, 0.59, False),
    ("llama-3.3-70b-turbo", "meta-llama/Llama-3.3-70B-Instruct-Turbo", "Llama 3.3 70B Turbo (Meta)", "budget", 0.88, 0.88, False),
    ("llama-3.1-8b-turbo", "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo", "Llama 3.1 8B Turbo (Meta)", "ultra-budget", 0.18, 0.18, False),
    ("llama-3.1-405b-turbo", "meta-llama/Meta-Llama-3.1-405B-Instruct-Turbo", "Llama 3.1 405B Turbo (Meta)", "premium", 3.50, 3.50, True),
    ("llama-3.2-3b-turbo", "meta-llama/Llama-3.2-3B-Instruct-Turbo", "Llama 3.2 3B Turbo (Meta)", "ultra-budget", 0.06, 0.06, False),
    ("llama-3-8b-lite", "meta-llama/Meta-Llama-3-8B-Instruct-Lite", "Llama 3 8B Lite (Meta)", "ultra-budget", 0.10, 0.10, False),
    # Zhipu
    ("glm-4.7", "zai-org/GLM-4.7", "GLM 4.7 (Zhipu)", "budget", 0.45, 2.00, False),
    ("glm-4.6", "zai-org/GLM-4.6", "GLM 4.6 (Zhipu)", "budget", 0.60, 2.20, False),
    ("glm-4.5-air", "zai-org/GLM-4.5-Air-FP8", "GLM 4.5 Air (Zhipu)", "budget", 0.20, 1.10, False),
    # OpenAI open weights
    ("gpt-oss-120b", "openai/gpt-oss-120b", "GPT-OSS 120B (OpenAI)", "budget", 0.15, 0.60, False),
    ("gpt-oss-20b", "openai/gpt-oss-20b", "GPT-OSS 20B (OpenAI)", "ultra-budget", 0.05, 0.20, False),
    # Deep Cogito
    ("cogito-70b", "deepcogito/cogito-v2-preview-llama-70B", "Cogito v2 70B (Deep Cogito)", "budget", 0.88, 0.88, False),
    ("cogito-109b-moe", "deepcogito/cogito-v2-preview-llama-109B-MoE", "Cogito v2 109B MoE (Deep Cogito)", "budget", 0.18, 0.59, False),
    ("cogito-405b", "deepcogito/cogito-v2-preview-llama-405B", "Cogito v2 405B (Deep Cogito)", "premium", 3.50, 3.50, True),
    ("cogito-671b", "deepcogito/cogito-v2-1-671b", "Cogito v2.1 671B (Deep Cogito)", "premium", 1.25, 1.25, True),
    # Mistral
    ("ministral-3-14b", "mistralai/Ministral-3-14B-Instruct-2512", "Ministral 3 14B (Mistral)", "budget", 0.80, 0.80, False),
    ("mistral-small-3-24b", "mistralai/Mistral-Small-24B-Instruct-2501", "Mistral Small 3 24B (Mistral)", "budget", 0.80, 0.80, False),
    ("mistral-7b-v0.3", "mistralai/Mistral-7B-Instruct-v0.3", "Mistral 7B v0.3 (Mistral)", "budget", 0.20, 0.20, False),
    # NVIDIA
    ("nemotron-nano-9b-v2", "nvidia/NVIDIA-Nemotron-Nano-9B-v2", "Nemotron Nano 9B v2 (NVIDIA)", "budget", 0.88, 0.88, False),
    # Google
    ("gemma-3n-e4b", "google/gemma-3n-E4B-it", "Gemma 3n E4B (Google)", "ultra-budget", 0.02, 0.04, False),
    ("gemma-2b", "google/gemma-2b-it", "Gemma 2B (Google)", "ultra-budget", 0.20, 0.20, False),
    # Others
    ("trinity-mini", "arcee-ai/trinity-mini", "Trinity Mini (Arcee)", "budget", 0.80, 0.80, False),
    ("rnj-1-instruct", "essentialai/rnj-1-instruct", "Rnj-1 Instruct (Essential AI)", "budget", 0.88, 0.88, False),
    ("mythomax-l2-13b", "Gryphe/MythoMax-L2-13b", "MythoMax-L2 13B (Gryphe)", "budget", 0.20, 0.20, False),
]

_SYNTHETIC_MODELS: List[Tuple[str, str, str, str, float, float, bool]] = [
    ("deepseek-r1-0528-syn", "hf:deepseek-ai/DeepSeek-R1-0528", "DeepSeek R1 0528 (Synthetic)", "premium", 3.00, 7.00, True),
    ("kimi-k2-thinking-syn", "hf:moonshotai/Kimi-K2-Thinking", "Kimi K2 Thinking (Synthetic)", "premium", 2.00, 6.00, True),
    ("deepseek-v3-0324-syn", "hf:deepseek-ai/DeepSeek-V3-0324", "DeepSeek V3 0324 (Synthetic)", "budget", 0.60, 1.25, False),
    ("deepseek-v3.1-terminus-syn", "hf:deepseek-ai/DeepSeek-V3.1-Terminus", "DeepSeek V3.1 Terminus (Synthetic)", "budget", 0.70, 1.40, False),
    ("minimax-m2-syn", "hf:MiniMaxAI/MiniMax-M2", "MiniMax M2 (Synthetic)", "budget", 0.50, 1.00, False),
    ("minimax-m2.1-syn", "hf:MiniMaxAI/MiniMax-M2.1", "MiniMax M2.1 (Synthetic)", "budget", 0.55, 1.10, False),
    ("qwen3-coder-480b-syn", "hf:Qwen/Qwen3-Coder-480B-A35B-Instruct", "Qwen3 Coder 480B (Synthetic)", "premium", 3.00, 6.00, True),
]

# Models that emit chain-of-thought before the answer; they get the longer
# timeout and token budget
REASONING_MODEL_IDS = frozenset(
    {
        "deepseek-r1",
        "deepseek-r1-0528-syn",
        "kimi-k2-thinking-syn",
        "qwen3-235b-thinking",
        "qwen3-next-80b-thinking",
    }
)

# Synthetic model -> Together equivalent. kimi-k2.5-syn is currently disabled
# on Synthetic; its mapping is kept so re-enabling the model needs no change here.
MODEL_FALLBACKS: Dict[str, str] = {
    "deepseek-r1-0528-syn": "deepseek-r1",
    "kimi-k2-thinking-syn": "kimi-k2-instruct",
    "kimi-k2.5-syn": "kimi-k2-instruct",
}


def _build(vendor: str, rows: List[Tuple[str, str, str, str, float, float, bool]]) -> List[ModelSpec]:
    return [
        ModelSpec(
            id=model_id,
            vendor=vendor,
            model_name=model_name,
            display_name=display_name,
            tier=tier,
            pricing=ModelPricing(prompt_per_million=prompt, completion_per_million=completion),
            is_premium=premium,
            supports_reasoning_output=model_id in REASONING_MODEL_IDS,
        )
        for model_id, model_name, display_name, tier, prompt, completion, premium in rows
    ]


TOGETHER_MODELS: List[ModelSpec] = _build(TOGETHER, _TOGETHER_MODELS)
SYNTHETIC_MODELS: List[ModelSpec] = _build(SYNTHETIC, _SYNTHETIC_MODELS)
ALL_MODELS: List[ModelSpec] = TOGETHER_MODELS + SYNTHETIC_MODELS

_BY_ID: Dict[str, ModelSpec] = {spec.id: spec for spec in ALL_MODELS}


def get_model_spec(model_id: str) -> Optional[ModelSpec]:
    return _BY_ID.get(model_id)


def list_model_ids() -> List[str]:
    return [spec.id for spec in ALL_MODELS]
