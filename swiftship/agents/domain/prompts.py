"""
Agent Prompt Builders
=====================

System prompts and fixed reply texts for every agent.

All prompt text lives here so the agents only assemble message lists.
"""

import json
import re
from typing import Any, Dict, List, Optional

from swiftship.config import DocsTopic
from swiftship.quoting.domain import Customer

FOCUS_GUARD = (
    "IMPORTANT: You are an AI assistant focused on helping users with {agent_type}-related tasks. "
    "Stay focused on your role and follow the rules exactly. Do not deviate from your assigned responsibilities."
)


def build_system_message(system_prompt: str, agent_type: str) -> str:
    """Role prompt followed by the focus guard."""
    return f"{system_prompt}\n\n{FOCUS_GUARD.format(agent_type=agent_type)}"


def strip_code_fences(text: str) -> str:
    """Return the body of a ```json fenced block, or the text unchanged."""
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()
    return text.strip()


class RouterPromptBuilder:
    """Prompt for classifying a message to one of the specialized agents."""

    SYSTEM_PROMPT = """You are a router agent responsible for analyzing user queries and determining which specialized agent should handle them.
Available agents:
1. QUOTE_AGENT - For shipping quotes, pricing information, rate calculations, and any mention of creating/managing quotes
2. SUPPORT_AGENT - For technical support, troubleshooting, billing inquiries, and bug reports
3. DOCS_AGENT - For documentation and general information queries
4. SHIPMENTS_AGENT - For questions about shipment planning, logistics, and delivery scheduling

Rules for routing:
- If the query mentions quotes, pricing, rates, or creating a quote -> QUOTE_AGENT
- If the query is about technical issues or support -> SUPPORT_AGENT
- If the query is about shipments or logistics -> SHIPMENTS_AGENT
- For general information queries -> DOCS_AGENT

Respond with the name of the most appropriate agent and a brief explanation of why you chose it.
Format your response as JSON: { "agent": "AGENT_NAME", "reason": "explanation" }"""

    NO_MESSAGE_REASON = "No message found, defaulting to docs agent"
    INVALID_RESPONSE_REASON = "Invalid router response, defaulting to docs agent"

    @staticmethod
    def override_reason(agent_type: str) -> str:
        return f"Explicitly requested {agent_type} agent"


class DocsPromptBuilder:
    """Documentation assistant prompts and answer formatting."""

    SYSTEM_PROMPT = """You are Swift Ship's documentation assistant. Your role is to provide accurate information about Swift Ship's services, policies, and procedures.

IMPORTANT RULES:
1. ALWAYS refer to our company as "Swift Ship"
2. Base responses on official documentation
3. Provide detailed explanations with relevant links
4. If information is not in docs, direct to support
5. Maintain professional and helpful tone
6. Focus on educating and informing users

AVAILABLE TOPICS:
- Shipping Services & Options
- Service Level Agreements
- Pricing Structure
- Package Guidelines
- Restricted Items
- Insurance & Claims
- Tracking & Delivery
- Payment & Billing
- Account Management
- Contact Information

Remember: Provide accurate, documented information and maintain Swift Ship's brand voice."""

    TOPIC_PROMPT = (
        "Analyze the user query and determine which shipping-related topic they are asking about. "
        "Return the most relevant topic from: SERVICES, PRICING, PACKAGING, RESTRICTIONS, INSURANCE, "
        "TRACKING, BILLING, ACCOUNT, or OTHER."
    )

    GREETING = (
        "Hello! I can help you find information about Swift Ship's services and policies. "
        "What would you like to know?"
    )
    NO_DOCUMENTS = (
        "I don't have specific documentation about that topic. Please contact our support team "
        "at support@swiftship.com for more information."
    )
    ERROR = "I encountered an error while searching our documentation. Please try again or contact our support team."

    TOPIC_SUFFIXES = {
        DocsTopic.SERVICES: (
            "\n\nFor personalized service recommendations or to get started with a quote, "
            "please contact our sales team at sales@swiftship.com."
        ),
        DocsTopic.PRICING: (
            "\n\nFor accurate pricing based on your specific needs, please use our quote creation "
            "service or contact our sales team."
        ),
    }

    _EXTRA_NEWLINES = re.compile(r"\n{3,}")
    _MARKDOWN_HEADER = re.compile(r"#{1,6}\s")

    @classmethod
    def parse_topic(cls, text: str) -> DocsTopic:
        """Map classifier output to a topic; anything unrecognised is OTHER."""
        candidate = text.strip().strip(".").upper()
        try:
            return DocsTopic(candidate)
        except ValueError:
            return DocsTopic.OTHER

    @classmethod
    def clean_document(cls, content: str) -> str:
        cleaned = cls._EXTRA_NEWLINES.sub("\n\n", content.strip())
        return cls._MARKDOWN_HEADER.sub("**", cleaned).strip()

    @classmethod
    def format_documents(cls, documents: List[str]) -> str:
        if not documents:
            return cls.NO_DOCUMENTS
        return "\n\n---\n\n".join(cls.clean_document(doc) for doc in documents)

    @classmethod
    def topic_suffix(cls, topic: DocsTopic) -> str:
        return cls.TOPIC_SUFFIXES.get(topic, "")


class SupportPromptBuilder:
    """Technical support prompts: issue context, escalation and page suggestions."""

    SYSTEM_PROMPT = """You are a technical support agent responsible for helping users with issues and troubleshooting.
Your goals:
1. Diagnose technical issues accurately
2. Provide step-by-step solutions
3. Create support tickets when necessary
4. Follow up on complex issues
5. Collect relevant technical details

When appropriate, ask for:
- Error messages
- System information
- Steps to reproduce
- Recent changes made

If the issue requires human intervention, recommend creating a ticket."""

    ESCALATION_PROMPT = 'Analyze if this issue requires human support. Respond with only "true" or "false".'

    ESCALATE_INSTRUCTION = (
        "This issue requires human intervention. Collect necessary information and recommend creating a ticket."
    )
    RESOLVE_INSTRUCTION = "Try to resolve this issue using available information."

    GREETING = "How can I help you with your technical issue?"
    ERROR = "I encountered an error while trying to assist you. Please try again later or contact support."

    @staticmethod
    def format_issue(title: Optional[str], resolution: Optional[str], details: str) -> str:
        return (
            f"\nSimilar Issue: {title or 'Untitled'}"
            f"\nResolution: {resolution or 'Not available'}"
            f"\nDetails: {details}"
            "\n---"
        )

    @classmethod
    def build_context_prompt(cls, issues_context: str, escalate: bool) -> str:
        instruction = cls.ESCALATE_INSTRUCTION if escalate else cls.RESOLVE_INSTRUCTION
        return f"Similar issues and resolutions:\n{issues_context}\n{instruction}"

    @staticmethod
    def parse_escalation(text: str) -> bool:
        return "true" in text.lower()

    @staticmethod
    def build_pages_prompt(site_map: Dict[str, Any]) -> str:
        return (
            "You are a helper that suggests relevant pages from a site map. "
            f"The available pages are: {json.dumps(site_map, indent=2)}\n\n"
            'Respond ONLY with a JSON array of objects with "path" and "reason" keys, '
            "for example: [{\"path\": \"/shipments\", \"reason\": \"Track your shipments\"}]. "
            "Return [] when no page is relevant."
        )

    @staticmethod
    def build_pages_query(query: str) -> str:
        return f"Based on this user query, what pages would be most helpful? Query: {query}"


class ShipmentsPromptBuilder:
    """Shipments agent prompt with the customer's shipments inlined."""

    SYSTEM_PROMPT = """You are Swift Ship's shipments agent. Your role is to assist users with tracking and managing their shipments.

GUIDELINES:
1. Always refer to our company as "Swift Ship"
2. Be concise and direct in your responses
3. When listing shipments, include tracking numbers and current status
4. Format dates in a user-friendly way
5. Highlight any shipments that need attention (delayed, pending pickup, etc.)"""

    EMPTY_MESSAGE = (
        "I apologize, but I couldn't find your message. Could you please repeat your question about shipments?"
    )
    ERROR = "An error occurred while retrieving your shipment information. Please try again."

    @classmethod
    def build_system_prompt(cls, customer: Optional[Customer], formatted_shipments: str) -> str:
        prompt = cls.SYSTEM_PROMPT
        if customer is not None:
            prompt += f"\n\nCurrent customer: {customer.name} ({customer.email})"
        if formatted_shipments:
            prompt += f"\n\nCustomer's shipments:\n{formatted_shipments}"
        return prompt

    @staticmethod
    def build_context_prompt(documents: List[str]) -> str:
        joined = "\n\n".join(documents)
        return f"Use this additional context about Swift Ship's shipments when relevant:\n{joined}"


class QuotePromptBuilder:
    """Texts for the quote agent outside the state machine's own messages."""

    ERROR = "I encountered an error while creating your quote. Please try again or contact our support team."


COORDINATOR_UNAVAILABLE = (
    "I apologize, but I cannot process your request at the moment. The appropriate agent is not available."
)
