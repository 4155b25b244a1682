"""
Prompt builder for CloudDecode.

This module builds the chat messages sent to the OpenAI API when a shell or
cloud CLI command needs explaining.
"""

from typing import Dict, List, Optional

SUPPORTED_TOOLING = ("Shell", "AWS CLI", "Azure CLI", "gcloud", "kubectl", "Docker")


class PromptBuilder:
    """
    Builder for explanation prompts.

    The system prompt pins the response to a JSON object with exactly the
    fields the result parser expects.
    """

    RESPONSE_SCHEMA = (
        "{\n"
        '  "issue": "one-line headline of what the command does",\n'
        '  "cause": "how the command works, flag by flag where useful",\n'
        '  "solution": "an architect tip: how to fix, harden or improve it",\n'
        '  "examples": [\n'
        '    "equivalent or related command # short annotation",\n'
        '    "another variant"\n'
        "  ]\n"
        "}"
    )

    EXAMPLE_EXCHANGE = (
        '[Command: "aws s3 ls"]\n'
        "{\n"
        '  "issue": "Lists S3 buckets in the account",\n'
        '  "cause": "Without a path argument aws s3 ls calls ListBuckets and '
        'prints every bucket owned by the caller with its creation date.",\n'
        '  "solution": "Pass s3://bucket/prefix to list objects and add '
        '--recursive --summarize to get totals.",\n'
        '  "examples": [\n'
        '    "aws s3 ls s3://my-bucket --recursive # list every object",\n'
        '    "aws s3api list-buckets --query \'Buckets[].Name\'"\n'
        "  ]\n"
        "}"
    )

    def __init__(self, max_examples: int = 4):
        """
        Initialize the prompt builder.

        Args:
            max_examples (int): Upper bound on the number of examples asked for.
        """
        self.max_examples = max(1, max_examples)
        self.system_prompt = self.build_system_prompt()

    def build_system_prompt(self) -> str:
        """
        Build the system prompt describing the task and response format.

        Returns:
            str: System prompt text.
        """
        tooling = ", ".join(SUPPORTED_TOOLING)
        lines = [
            "You are CloudDecode, an infrastructure engineer who explains "
            f"terminal commands ({tooling}).",
            "Explain the command the user pastes: what it does, why it works "
            "the way it does, and how to fix or improve it.",
            "",
            "RESPONSE FORMAT REQUIREMENTS:",
            "You MUST respond in valid JSON with this EXACT structure:",
            self.RESPONSE_SCHEMA,
            "",
            f"- Give between 1 and {self.max_examples} examples.",
            "- Each example is a complete command. Optionally append ' # ' and "
            "a short annotation.",
            "- Never put '#' inside the command part of an example.",
            "- If the input is not a command, explain what is wrong with it in "
            '"issue" and suggest the closest valid command in "examples".',
            "",
            "EXAMPLE:",
            self.EXAMPLE_EXCHANGE,
        ]
        return "\n".join(lines)

    def build_explanation_prompt(
        self, query: str, context: Optional[str] = None
    ) -> List[Dict[str, str]]:
        """
        Build the messages for explaining a command.

        Args:
            query (str): The raw command string, sent as is.
            context (Optional[str]): Extra system context, e.g. the user's
                platform.

        Returns:
            List[Dict[str, str]]: List of message dictionaries for the OpenAI API.
        """
        messages = [{"role": "system", "content": self.system_prompt}]
        if context:
            messages.append({"role": "system", "content": context})
        messages.append({"role": "user", "content": f"Explain this command: {query}"})
        return messages
