"""Pathway Pipeline Error Types.

Every stage returns a fully valid result or raises one of these types.
No raw RuntimeErrors or ValueErrors should escape a pipeline stage.

Standard error codes:
- NOTHING_TO_PLAN: The resolved day-set is empty
- PIPELINE_BUSY: A generation or finalize request is already in flight
- GENERATION_PARSE: Generative output is not parseable JSON
- GENERATION_SCHEMA: Drafts are not exactly three or have the wrong day count
- FINALIZE_VALIDATION: The edited draft fails structural validation
- FINALIZE_SCHEMA: The detailed plan fails the day-count schema
- ENRICHMENT: A venue lookup failed for one block (never surfaced)
- UPSTREAM: The generative service failed or returned nothing
- MATERIALIZATION_EMPTY: A plan produced zero schedule blocks
"""


class PathwayError(RuntimeError):
    """Base class for pathway pipeline failures.

    Attributes:
        code: Error code (e.g., "GENERATION_SCHEMA", "FINALIZE_VALIDATION")
        message: Short description of the failure
        details: List of error detail strings
        status_code: HTTP status used when the error reaches the API layer
        user_message: Text suitable for showing to the caller
        retryable: Whether the caller may retry the same request
    """

    code = "PATHWAY_ERROR"
    status_code = 500
    user_message = "Something went wrong while planning, please try again."
    retryable = True

    def __init__(self, message: str, details: list[str] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(f"{self.code}: {message}" + (f" {self.details}" if self.details else ""))


class NothingToPlanError(PathwayError):
    code = "NOTHING_TO_PLAN"
    status_code = 400
    user_message = "Please select at least one day to plan"
    retryable = False


class PipelineBusyError(PathwayError):
    code = "PIPELINE_BUSY"
    status_code = 409
    user_message = "A pathway request is already in progress."
    retryable = False


class GenerationParseError(PathwayError):
    code = "GENERATION_PARSE"
    status_code = 502
    user_message = "The pathway generator returned an unreadable response, please try again."


class GenerationSchemaError(PathwayError):
    code = "GENERATION_SCHEMA"
    status_code = 502
    user_message = "The pathway generator returned an incomplete set of drafts, please try again."


class FinalizeValidationError(PathwayError):
    code = "FINALIZE_VALIDATION"
    status_code = 400
    user_message = "The edited draft is incomplete."
    retryable = False


class FinalizeSchemaError(PathwayError):
    code = "FINALIZE_SCHEMA"
    status_code = 502
    user_message = "The detailed plan did not match the selected days, please try again."


class EnrichmentError(PathwayError):
    """Venue lookup failure for a single block.

    Always logged and swallowed by the enrichment pass.
    """

    code = "ENRICHMENT"
    status_code = 502


class UpstreamError(PathwayError):
    code = "UPSTREAM"
    status_code = 502
    user_message = "The pathway generator is unavailable right now, please try again."


class MaterializationEmptyError(PathwayError):
    code = "MATERIALIZATION_EMPTY"
    status_code = 422
    user_message = "No activities were generated, please try again."
