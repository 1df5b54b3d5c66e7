"""Purchase terms.

Fixed consulting agreement copied in full into every proposal at assembly
time, so later edits here never alter proposals that already exist.
"""

from proposal_engine.models import Clause, TermsBlock

TERMS_VERSION = "1.0.0"

_PURCHASE_TERMS = TermsBlock(
    title_caps="CONSULTING AGREEMENT",
    clauses=[
        Clause(
            number=1,
            title="Scope of Services",
            body=(
                "Good Circle Marketing agrees to provide the services described in this proposal. "
                "Any changes to the scope must be agreed upon in writing by both parties."
            ),
        ),
        Clause(
            number=2,
            title="Payment Terms",
            body=(
                "Payment is due according to the schedule outlined in the Investment section. "
                "Invoices are payable within 15 days of receipt. Late payments may be subject "
                "to a 1.5% monthly service charge."
            ),
        ),
        Clause(
            number=3,
            title="Ownership and Intellectual Property",
            body=(
                "Upon full payment, Client owns all deliverables created specifically for this "
                "engagement. Good Circle Marketing retains the right to use work samples in its "
                "portfolio with Client permission."
            ),
        ),
        Clause(
            number=4,
            title="Confidentiality",
            body=(
                "Both parties agree to keep confidential any proprietary information shared during "
                "this engagement. This obligation continues for two years after project completion."
            ),
        ),
        Clause(
            number=5,
            title="Termination",
            body=(
                "Either party may terminate this agreement with 30 days written notice. Client is "
                "responsible for payment for all work completed through the termination date."
            ),
        ),
        Clause(
            number=6,
            title="Limitation of Liability",
            body=(
                "Good Circle Marketing liability is limited to the fees paid for services under this "
                "agreement. Neither party is liable for indirect, incidental, or consequential damages."
            ),
        ),
    ],
)


def get_terms_block() -> TermsBlock:
    """Deep copy of the current terms block."""
    return _PURCHASE_TERMS.model_copy(deep=True)
