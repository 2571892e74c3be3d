class Issues:
    NEUTRAL = "Evidence neither confirms nor refutes the claim"
    CONTRADICTED = "Evidence contradicts the claim"
    LOW_SIMILARITY = "Low semantic similarity to best evidence ({similarity:.2f})"
    CITATION_MISMATCH = "Best evidence found in an uncited source"
    NUMERIC_MISMATCH = "Numeric mismatch between claim and evidence"
    NO_SOURCES = "No sources available for verification"
    SYSTEM_ERROR = "System error during verification"


class Reasoning:
    NLI_FAILED = "NLI check failed"
    NO_SOURCES = "No source passages were available to check this claim."
    SYSTEM_ERROR = "Verification could not be completed for this claim."
    UNPARSEABLE = "Unable to parse verifier output."


class ProgressStatus:
    EXTRACTING = "Extracting claims"
    PREPARING = "Preparing evidence"
    EMBEDDING = "Embedding claims"
    VERIFYING = "Verifying claims"
    DONE = "Verification complete"
