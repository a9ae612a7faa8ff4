# PURPOSE: Portfolio suggestion flow: amount + risk tolerance in, asset
#          allocation, projected return range and commentary out.
# CONTEXT: The model is not trusted to follow instructions, so the output is
#          post-checked before it can reach a user. A missing disclaimer or a
#          contradictory return range fails the run; percentage drift is only
#          logged.

from typing import Any, Dict

from stockpro.errors import EmptyAllocationError, InconsistentRangeError, MissingDisclaimerError
from stockpro.model_interface.types import PortfolioSuggestionOutput
from stockpro.prompts.templates import render_portfolio_prompt
from .base import Flow

PORTFOLIO_DISCLAIMER = (
    "IMPORTANT: This is an AI-generated portfolio suggestion for informational and educational "
    "purposes only. It is NOT financial advice. All investments carry risk, and past performance "
    "does not guarantee future results. Market conditions are dynamic. Consult with a qualified "
    "financial advisor before making any investment decisions."
)
DISCLAIMER_MARKER = "NOT financial advice"

ALLOCATION_TOTAL = 100.0
ALLOCATION_TOLERANCE = 0.1


def allocation_total(output: PortfolioSuggestionOutput) -> float:
    return sum(float(a["percentage"]) for a in output["portfolioAllocation"])


class PortfolioSuggestionFlow(Flow):
    name = "portfolio_suggestion"
    input_schema_name = "portfolio_input"
    output_schema_name = "portfolio_output"

    def render(self, data: Dict[str, Any]) -> str:
        return render_portfolio_prompt(data, self.output_schema, PORTFOLIO_DISCLAIMER)

    def post_check(self, output: Dict[str, Any], log) -> None:
        """
        Semantic checks on a schema-valid reply.

        order:
        1) allocation must be non-empty (EmptyAllocationError);
        2) percentages should total 100 ± 0.1, otherwise warn and continue;
        3) importantDisclaimer must contain DISCLAIMER_MARKER (MissingDisclaimerError);
        4) projectedReturnRange.low <= high (InconsistentRangeError).
        """
        if not output["portfolioAllocation"]:
            raise EmptyAllocationError("AI failed to generate a portfolio allocation. Please check your input values.")

        total = allocation_total(output)
        log.debug("portfolio.allocation_total", total=round(total, 4))
        if abs(total - ALLOCATION_TOTAL) > ALLOCATION_TOLERANCE:
            # Drift is tolerated; the suggestion is still returned.
            log.warning("portfolio.allocation_drift", total=round(total, 4), expected=ALLOCATION_TOTAL)

        disclaimer = output.get("importantDisclaimer") or ""
        if DISCLAIMER_MARKER not in disclaimer:
            raise MissingDisclaimerError("AI response is missing the critical financial advice disclaimer.")

        rng = output["projectedReturnRange"]
        low, high = rng["low"], rng["high"]
        if low > high:
            raise InconsistentRangeError(
                f"AI failed to generate a valid projected return range (low {low} is greater than high {high}).",
                low=low,
                high=high,
            )
