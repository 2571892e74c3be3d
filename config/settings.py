# config/settings.py
import os
import sys
from typing import List, Tuple
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import EmbeddingBackend, Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")

    # Anthropic Settings (claim extraction + NLI)
    ANTHROPIC_API_URL: str = Field(
        default="https://api.anthropic.com/v1/messages",
        validation_alias="ANTHROPIC_API_URL",
    )
    ANTHROPIC_API_KEY: str = Field(default="", validation_alias="ANTHROPIC_API_KEY")
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-5-haiku-latest", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = Field(
        default="2023-06-01", validation_alias="ANTHROPIC_VERSION"
    )
    EXTRACT_TIMEOUT_SECONDS: float = 45.0
    NLI_TIMEOUT_SECONDS: float = 30.0

    # Embedding Engine
    EMBEDDING_BACKEND: EmbeddingBackend = Field(
        default=EmbeddingBackend.LOCAL, validation_alias="EMBEDDING_BACKEND"
    )
    EMBEDDING_MODEL_NAME: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBEDDING_BATCH_SIZE: int = 64
    EMBEDDING_API_URL: str = Field(
        default="https://openrouter.ai/api/v1/embeddings",
        validation_alias="EMBEDDING_API_URL",
    )
    EMBEDDING_API_KEY: str = Field(default="", validation_alias="EMBEDDING_API_KEY")
    EMBEDDING_MODEL: str = Field(
        default="google/gemini-embedding-001", validation_alias="EMBEDDING_MODEL"
    )
    EMBEDDING_MODEL_FALLBACK: str = Field(
        default="qwen/qwen3-embedding-8b", validation_alias="EMBEDDING_MODEL_FALLBACK"
    )
    EMBEDDING_MAX_RETRIES: int = Field(default=2, ge=1)
    EMBEDDING_RETRY_DELAY_SECONDS: float = 0.5
    EMBEDDING_TIMEOUT_SECONDS: float = 60.0

    # Verification budget defaults (standard tier)
    MAX_CLAIMS_TO_VERIFY: int = Field(default=30, ge=0)
    VERIFICATION_CONCURRENCY: int = Field(default=6, ge=1)

    # Passage chunking
    MIN_PASSAGE_LENGTH: int = 20
    MAX_SOURCE_CHARS: int = 25_000
    PASSAGE_WINDOW_SIZES: Tuple[int, ...] = (1, 2, 3)
    SENTENCE_ABBREVIATIONS: List[str] = [
        "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "rev", "gen", "sen",
        "rep", "gov", "inc", "ltd", "co", "corp", "llc", "plc", "bros", "vs",
        "etc", "e.g", "i.e", "approx", "est", "dept", "no", "fig", "vol",
        "u.s", "u.s.a", "u.k", "u.n", "e.u", "jan", "feb", "mar", "apr",
        "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
    ]

    # Retrieval
    CITATION_MISMATCH_THRESHOLD: float = 0.12

    # Numeric consistency tolerances
    PERCENT_ABS_TOLERANCE: float = 0.5
    NUMERIC_RATIO_TOLERANCE: float = 0.05
    RANGE_ENDPOINT_TOLERANCE: float = 0.10

    # Signal aggregation. Every factor is <= 1 so confidence stays in [0, 1].
    ENTAILMENT_SUPPORTED_CONFIDENCE: float = Field(default=1.0, ge=0, le=1)
    ENTAILMENT_NEUTRAL_CONFIDENCE: float = Field(default=0.55, ge=0, le=1)
    ENTAILMENT_CONTRADICTED_CONFIDENCE: float = Field(default=0.15, ge=0, le=1)
    LOW_RETRIEVAL_THRESHOLD: float = 0.45
    LOW_RETRIEVAL_MULTIPLIER: float = Field(default=0.7, gt=0, le=1)
    CITATION_MISMATCH_MULTIPLIER: float = Field(default=0.85, gt=0, le=1)
    NUMERIC_MISMATCH_MULTIPLIER: float = Field(default=0.4, gt=0, le=1)
    HIGH_CONFIDENCE_THRESHOLD: float = 0.72
    MEDIUM_CONFIDENCE_THRESHOLD: float = 0.42

    # Logging knobs
    LOGGER_NAME: str = "factcheck-engine"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    EXTRACT_SYSTEM_PROMPT: str = (
        "You are a fact extractor. Given a text, extract all factual claims that can be verified against sources.\n"
        "\n"
        "RULES:\n"
        "1. Extract ONLY factual claims (not opinions, analysis, or speculation).\n"
        "2. Each claim should be a single, atomic statement.\n"
        "3. INCLUDE claims with specific numbers, dates, names, percentages, or events.\n"
        "4. Track which source numbers [n] are cited for each claim in the original text.\n"
        "5. Keep claims self-contained (include the context needed to read the claim in isolation).\n"
        "\n"
        "DO NOT EXTRACT:\n"
        '- Subjective statements ("X is better than Y").\n'
        '- Transitional phrases ("In conclusion...", "Overall...").\n'
        '- Future predictions ("Analysts expect...") unless it is a specific cited projection.\n'
        '- Vague statements ("The company is growing").\n'
        "\n"
        "OUTPUT: JSON ONLY, no code fences:\n"
        '{"claims":[{"id":"c1","text":"<claim as a complete sentence>","citedSources":[1,3]}]}\n'
    )

    NLI_SYSTEM_PROMPT: str = (
        "You are a strict fact-checker performing Natural Language Inference (NLI). "
        "Determine if the EVIDENCE supports, contradicts, or does not address the CLAIM.\n\n"
        "Rules:\n"
        "- TEMPORAL SUPERIORITY: evidence significantly older than the claim or the current date "
        "cannot contradict a claim about current status; answer NEUTRAL (outdated). Newer evidence "
        "that refutes the claim is CONTRADICTED.\n"
        '- NUMBERS MUST MATCH: "$96.8 billion" vs "$96.8B" is SUPPORTED; "grew 18%" vs "grew 15%" is CONTRADICTED.\n'
        '- DIRECTION MUST MATCH: "grew" vs "declined" is CONTRADICTED.\n'
        '- ENTITIES MUST MATCH: evidence about a different entity is NEUTRAL.\n'
        '- SPECIFICITY MATTERS: "confirmed" vs "plans to" is NEUTRAL.\n\n'
        "Verdicts: SUPPORTED (evidence explicitly confirms), CONTRADICTED (recent authoritative evidence "
        "proves it false), NEUTRAL (outdated, irrelevant, or ambiguous).\n"
        '- Return JSON ONLY: {"verdict":"SUPPORTED|CONTRADICTED|NEUTRAL","reasoning":"..."}\n'
        "- No code fences.\n"
    )

    NLI_USER_TEMPLATE: str = (
        'CLAIM: "{claim}"\n'
        'EVIDENCE: "{evidence}"\n'
        "METADATA: Evidence Date: {source_date} | Current Date: {current_date}\n\n"
        "Return JSON only."
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
