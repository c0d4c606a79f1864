"""Centralized constants shared across the ideator agent and routes.

This module is the SINGLE SOURCE OF TRUTH for LLM defaults, retry policy,
idea bounds, and the keyword tables used by the market context extractor.
Keyword tables are plain data so they can be tuned without touching the
extraction control flow.
"""

from __future__ import annotations

# ── LLM defaults ────────────────────────────────────────────────────────

DEFAULT_LLM_CONFIG: dict[str, float | int | str] = {
    "model": "gpt-4o",
    "temperature": 0.75,
    "max_tokens": 8000,
    "top_p": 0.9,
    "presence_penalty": 0.1,
    "frequency_penalty": 0.1,
    "timeout_ms": 30_000,
}

# Per-call generation options
BATCH_GENERATION_TEMPERATURE: float = 0.8
SINGLE_IDEA_TEMPERATURE: float = 0.9
REFINEMENT_TEMPERATURE: float = 0.7
SINGLE_IDEA_MAX_TOKENS: int = 2000

# ── Retry policy ────────────────────────────────────────────────────────
# delay(attempt) = min(BASE * MULTIPLIER ** (attempt - 1), MAX), attempt is 1-based

RETRY_BASE_DELAY_MS: int = 1000
RETRY_MAX_DELAY_MS: int = 10_000
RETRY_BACKOFF_MULTIPLIER: int = 2

# ── Idea generation ─────────────────────────────────────────────────────

IDEA_GENERATION: dict[str, int] = {
    "required_count": 5,
    "min_title_length": 5,
    "max_title_length": 30,
    "min_description_length": 50,
    "max_description_length": 500,
    "target_revenue": 1_000_000_000,
}

DEFAULT_LOCALE: str = "en"

# ── Validation ──────────────────────────────────────────────────────────

DEFAULT_MIN_QUALITY_SCORE: float = 60.0
DEFAULT_MAX_RETRIES: int = 3

SEVERITY_PENALTIES: dict[str, int] = {"error": 20, "warning": 10, "info": 5}
COMPLETENESS_BONUS: int = 5
REALISM_BONUS: int = 10
PLAUSIBLE_REVENUE_BAND: tuple[float, float] = (100_000_000, 10_000_000_000)

HIGH_REVENUE_WARNING_THRESHOLD: float = 100_000_000_000
LOW_REVENUE_INFO_THRESHOLD: float = 10_000_000
MOAT_REVIEW_REVENUE_THRESHOLD: float = 1_000_000_000
MAX_CUSTOMER_PAINS: int = 10

# Summary: ideas above this revenue count as "high value"
HIGH_VALUE_REVENUE: float = 100_000_000

IMPROVEMENT_SUGGESTIONS: dict[str, str] = {
    "title": "Rework the title '{title}' into a sharper, more concise pitch.",
    "description": "Make the description more concrete and spell out what is unique and valuable.",
    "targetCustomers": "Define the target customers more precisely with a clear persona.",
    "estimatedRevenue": "Re-estimate revenue from market size and an attainable share.",
    "valueProposition": "State a clear value proposition that differentiates from competitors.",
    "revenueModel": "Detail how the business makes money (pricing, billing model, channels).",
    "customerPains": "Prioritise the customer pains and focus on the most important ones.",
    "implementationDifficulty": "Re-assess implementation difficulty against technical requirements, resources and timeline.",
    "marketOpportunity": "Describe a concrete market opportunity grounded in the research data.",
}

LOW_SCORE_ADVICE: str = "Increase the specificity of the idea and examine its feasibility in detail."
MID_SCORE_ADVICE: str = "Add more detail to the revenue model and the market opportunity."

# ── Market context keyword tables ───────────────────────────────────────
# Each entry: (keywords, derived text). Lowercase keywords match case-insensitively,
# keywords containing capitals (acronyms) match as written.

UNMET_NEED_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("shortage", "lack", "absent", "insufficient", "不足", "欠如"), "Existing solutions fall short"),
    (("small business", "SMB", "SME", "中小企業"), "Affordable solutions for small businesses"),
    (("simple", "easy", "簡易", "シンプル"), "Simple, easy-to-use solutions"),
    (("AI", "automation", "automated", "自動"), "Efficiency through AI and automation"),
]

# Challenges containing these terms become unmet needs verbatim
CHALLENGE_NEED_KEYWORDS: tuple[str, ...] = ("shortage", "lack", "absent", "不足", "欠如")

GENERIC_UNMET_NEED: str = "General improvement needs"

LANDSCAPE_GAP_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("enterprise", "large companies", "大企業向け"), "No solutions aimed at small businesses"),
    (("expensive", "costly", "high price", "高価", "高い"), "Lack of affordable solutions"),
]

OPPORTUNITY_GAP_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("specialized", "vertical", "industry-specific", "特化"), "Lack of industry-specific solutions"),
]

HIGH_SEVERITY_KEYWORDS: tuple[str, ...] = (
    "severe", "critical", "serious", "cost", "talent", "shortage",
    "深刻", "重大", "コスト", "人材", "不足",
)
LOW_SEVERITY_KEYWORDS: tuple[str, ...] = ("minor", "small", "partial", "軽微", "小さい", "一部")

DAILY_FREQUENCY_KEYWORDS: tuple[str, ...] = ("daily", "every day", "毎日")
FREQUENT_FREQUENCY_KEYWORDS: tuple[str, ...] = (
    "always", "frequent", "constant", "ongoing", "continuous",
    "常に", "頻繁", "日常", "継続",
)
RARE_FREQUENCY_KEYWORDS: tuple[str, ...] = ("rare", "seldom", "occasionally", "稀", "まれ", "時々")

CURRENT_SOLUTION_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("manual", "by hand", "手動", "人力"), "Manual processes"),
    (("excel", "spreadsheet", "スプレッドシート"), "Spreadsheet-based management"),
]
GENERIC_CURRENT_SOLUTION: str = "Existing alternative solutions"

LIMITATION_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("expensive", "cost", "high price", "高い", "コスト"), "High cost"),
    (("complex", "complicated", "複雑"), "Complex operation"),
    (("time", "slow", "時間"), "Time-consuming"),
    (("error", "mistake", "エラー"), "Error-prone"),
]
GENERIC_LIMITATION: str = "Lack of efficiency"

GROWTH_FACT_KEYWORDS: tuple[str, ...] = ("growth", "growing", "expand", "成長", "拡大")
TREND_FACT_KEYWORDS: tuple[str, ...] = (
    "growth", "growing", "increase", "expansion", "adoption", "shift", "change",
    "成長", "増加", "拡大", "普及", "移行", "変化",
)
PROBLEM_FACT_KEYWORDS: tuple[str, ...] = (
    "challenge", "problem", "difficult", "issue", "課題", "問題", "困難",
)

FACT_OPPORTUNITY_PLACEHOLDER_SIZE: float = 100_000_000_000
FACT_OPPORTUNITY_GROWTH_RATE: float = 15.0
FACT_OPPORTUNITY_NEEDS: list[str] = ["First-mover advantage in a growing market"]
FACT_OPPORTUNITY_GAPS: list[str] = ["Room for new entrants"]
DEFAULT_GROWTH_RATE: float = 10.0

FACT_PAIN_SOLUTIONS: list[str] = ["Existing manual processes"]
FACT_PAIN_LIMITATIONS: list[str] = ["Lack of efficiency", "Limited scalability"]

INSUFFICIENT_LANDSCAPE: str = "Insufficient competitive information"

# Magnitude suffixes recognised in free text, longest first
MAGNITUDE_UNITS: dict[str, float] = {
    "trillion": 1_000_000_000_000,
    "billion": 1_000_000_000,
    "million": 1_000_000,
    "兆": 1_000_000_000_000,
    "億": 100_000_000,
}

# ── Currency display bands (presentation only) ──────────────────────────
# (threshold, divisor, suffix, decimals)

CURRENCY_BANDS: dict[str, list[tuple[float, float, str, int]]] = {
    "en": [
        (1_000_000_000_000, 1_000_000_000_000, " trillion yen", 1),
        (1_000_000_000, 1_000_000_000, " billion yen", 1),
        (10_000, 10_000, " ten-thousand yen", 0),
    ],
    "ja": [
        (1_000_000_000_000, 1_000_000_000_000, "兆円", 1),
        (100_000_000, 100_000_000, "億円", 1),
        (10_000, 10_000, "万円", 0),
    ],
}
CURRENCY_BASE_SUFFIX: dict[str, str] = {"en": " yen", "ja": "円"}

# ── Error messages ──────────────────────────────────────────────────────

ERROR_MESSAGES: dict[str, str] = {
    "INSUFFICIENT_INPUT": "Input data is insufficient. Research output is required.",
    "LLM_GENERATION_FAILED": "Idea generation by the LLM failed.",
    "INVALID_OUTPUT_FORMAT": "The LLM output format is invalid.",
    "IDEA_COUNT_MISMATCH": "The number of generated ideas does not match the required count.",
    "QUALITY_THRESHOLD_NOT_MET": "Generated ideas do not meet the quality threshold.",
    "TOKEN_LIMIT_EXCEEDED": "Token limit exceeded.",
    "TIMEOUT": "The operation timed out.",
    "VALIDATION_FAILED": "Validation failed.",
}
