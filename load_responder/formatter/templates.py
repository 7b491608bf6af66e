from dataclasses import dataclass

from ..models import Scenario

LOAD_FOUND_TEMPLATE = """Hello,

Thank you for your inquiry about load {{LOAD_REFERENCE}}. Here are the complete details:

📦 LOAD INFORMATION:
• Reference: {{LOAD_REFERENCE}}
• Equipment: {{EQUIPMENT}}
• Commodity: {{COMMODITY}}
• Weight: {{WEIGHT}}
• Distance: {{DISTANCE}}{{SPECIAL_NOTES}}

📍 PICKUP:
{{PICKUP_STOPS}}

📍 DELIVERY:
{{DELIVERY_STOPS}}

💰 RATE: {{RATE}}
{{COMPLETENESS_NOTE}}
🚛 CAPACITY CONFIRMATION:
To confirm availability, please let us know:
1. When and where will you be empty for pickup?
2. Do you have the required equipment type available?
3. Any special requirements or concerns about this load?

We're ready to book this load immediately upon your confirmation.

"""

LOAD_PENDING_TEMPLATE = """Hello,

Thank you for your inquiry regarding load {{LOAD_REFERENCE}}.

We are pulling the complete details for this load now. You'll receive:
• Pickup and delivery locations with dates
• Commodity information and weight
• Our competitive rate
• Any special requirements

This information will be sent within the next {{FOLLOW_UP_WINDOW}}.

🚛 QUICK QUESTION: When and where will you be empty for pickup?

"""

NO_REFERENCE_TEMPLATE = """Hello,

Thank you for reaching out about this load opportunity.

To provide you with accurate pricing and availability, could you please provide one of the following:
• DAT load reference number
• QuoteFactory load ID
• Your internal load/order/system reference number

This will help us:
✓ Pull exact load details from our system
✓ Provide competitive and accurate pricing
✓ Confirm equipment availability
✓ Respond faster with a complete quote

Once you provide the reference number, we'll get back to you immediately with our availability and rate.

"""

ERROR_TEMPLATE = """Hello,

Thank you for your email. We experienced a temporary issue while {{ERROR_TYPE}}.

Our team has been notified and we're working to resolve this quickly. In the meantime, please feel free to:
• Reply with your load reference number
{{CALL_US_LINE}}
• Send any additional load details you have

We apologize for any inconvenience and look forward to assisting you with this load opportunity.

"""

SIGNATURE_TEMPLATE = """Best regards,
{{COMPANY_NAME}}

---
This is an automated response with real-time load data.
For immediate assistance, please reply to this email."""

FALLBACK_BODY = "Thank you for your email. We are processing your inquiry and will respond shortly."
FALLBACK_SUBJECT = "Load Inquiry Response"

INCOMPLETE_RECORD_NOTE = (
    "\nSome details are still being confirmed. Anything marked TBD will follow shortly.\n"
)
HAZMAT_NOTE = "\n⚠️ HAZMAT: This load contains hazardous materials."


@dataclass
class ResponseTemplates:
    """Reply templates, one per scenario, plus the shared signature block.

    Templates use ``{{PLACEHOLDER}}`` markers; any field left as None
    falls back to the built-in default.
    """
    load_found: str = LOAD_FOUND_TEMPLATE
    load_pending: str = LOAD_PENDING_TEMPLATE
    no_reference: str = NO_REFERENCE_TEMPLATE
    error: str = ERROR_TEMPLATE
    signature: str = SIGNATURE_TEMPLATE

    def __post_init__(self):
        # Treat explicit None as "use the default"
        self.load_found = self.load_found or LOAD_FOUND_TEMPLATE
        self.load_pending = self.load_pending or LOAD_PENDING_TEMPLATE
        self.no_reference = self.no_reference or NO_REFERENCE_TEMPLATE
        self.error = self.error or ERROR_TEMPLATE
        self.signature = self.signature or SIGNATURE_TEMPLATE

    def for_scenario(self, scenario: Scenario) -> str:
        if scenario == Scenario.LOAD_FOUND:
            return self.load_found
        elif scenario == Scenario.LOAD_PENDING:
            return self.load_pending
        elif scenario == Scenario.NO_REFERENCE:
            return self.no_reference
        elif scenario == Scenario.ERROR:
            return self.error
        raise ValueError(f"Unknown scenario: {scenario}")
