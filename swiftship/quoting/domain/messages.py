"""
Quote Conversation Messages
===========================

Customer-facing text for each step of the quote conversation.
"""

from typing import List

from swiftship.quoting.domain.entities import (
    PackageDetails, QuoteDestination, RouteInfo, ServiceOption
)


class QuoteMessages:
    """Fixed prompts and builders for the templated quote replies."""

    START_QUOTE = (
        "I'll help you create a shipping quote. First, I need some details about your shipment:\n\n"
        "1. What type of shipment is this?\n"
        "   - Full Truckload (FTL)\n"
        "   - Less than Truckload (LTL)\n"
        "   - Sea Container\n"
        "   - Bulk Freight\n\n"
        "2. What's the total weight in metric tons?\n"
        "3. What's the total volume in cubic meters?\n"
        "4. Are there any hazardous materials?\n\n"
        "Please provide all these details in your response."
    )

    ADDRESS_DETAILS = (
        "Thanks! Now I need the pickup and delivery information:\n\n"
        "1. What's the complete pickup address? (including city and state)\n"
        "2. What's the complete delivery address? (including city and state)\n"
        "3. When would you like the pickup to be scheduled? (date and time)\n\n"
        "Please provide all these details in your response."
    )

    PACKAGE_RETRY = (
        "I couldn't find all the shipment details I need. Please include the shipment type "
        "(FTL, LTL, sea container or bulk), the total weight in tons and the total volume "
        "in cubic meters, for example: \"Full truckload, 20 tons, 60 cubic meters, no hazardous materials\"."
    )

    ADDRESS_RETRY = (
        "I couldn't work out both addresses. Please tell me where to pick up and deliver, "
        "for example: \"from 123 Main St, Los Angeles, CA to 500 Broadway, New York, NY, "
        "pickup tomorrow at 9am\"."
    )

    SERVICE_RETRY = "Please select a service level: 'express', 'standard', or 'eco'."

    CONFIRM_RETRY = "Please confirm if you'd like to create this quote (yes/no)."

    CUSTOMER_REQUIRED = (
        "I need your customer information to create the quote. "
        "Please log in or provide your details."
    )

    CREATE_FAILED = (
        "I encountered an error while creating your quote. "
        "Please try again or contact our support team."
    )

    QUOTE_CANCELLED = (
        "Quote creation cancelled. Let me know if you'd like to start over or need anything else."
    )

    @staticmethod
    def _shipment_lines(package: PackageDetails, route: RouteInfo) -> List[str]:
        return [
            f"⚖️ Weight: {package.weight} tons",
            f"📐 Volume: {package.volume} m³",
            f"🚚 Distance: {round(route.kilometers)} km",
        ]

    @staticmethod
    def format_price(price: int) -> str:
        return f"${price:,}"

    @classmethod
    def service_options(
        cls,
        package: PackageDetails,
        route: RouteInfo,
        options: List[ServiceOption]
    ) -> str:
        lines = [
            "Based on your shipment details:",
            "",
            f"📦 {package.type.value.replace('_', ' ').upper()}",
            *cls._shipment_lines(package, route),
            "",
            "Available service options:",
            "",
        ]
        for index, option in enumerate(options, start=1):
            lines.append(f"{index}. {option.name} ({option.duration})")
            lines.append(f"   Price: {cls.format_price(option.price)}")
            lines.append("")
        lines.append(
            "Which service level would you like to select? Please type 'express', "
            "'standard', or 'eco' to choose your preferred service."
        )
        return "\n".join(lines)

    @classmethod
    def quote_summary(
        cls,
        package: PackageDetails,
        destination: QuoteDestination,
        route: RouteInfo,
        option: ServiceOption
    ) -> str:
        lines = [
            "Great choice! Here's a summary of your quote:",
            "",
            f"📦 Shipment Type: {package.type.value.replace('_', ' ').title()}",
            *cls._shipment_lines(package, route),
            "",
            f"📍 Pickup: {destination.from_address.display}",
            f"📅 Date: {destination.pickup_date.isoformat()}",
            "",
            f"📍 Delivery: {destination.to_address.display}",
            "",
            f"🚛 Service: {option.name}",
            f"💰 Price: {cls.format_price(option.price)}",
            "",
            "Would you like me to create this quote? (Yes/No)",
        ]
        return "\n".join(lines)

    @staticmethod
    def quote_created(quote_id: str) -> str:
        return (
            "✅ Quote created successfully!\n\n"
            f"Quote ID: {quote_id}\n\n"
            "Our team will review your quote and you'll receive a confirmation email shortly. "
            "You can also track the status of your quote in your account dashboard."
        )

    @staticmethod
    def missing_information(missing: List[str]) -> str:
        readable = ", ".join(field.replace("_", " ") for field in missing)
        return (
            f"Some quote information is missing ({readable}). "
            "Let's start over: say 'quote' to begin a new shipping quote."
        )
