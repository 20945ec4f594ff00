"""
Exceptions raised by the chat pipeline.

Routes translate these into HTTP status codes; see `fast_api`.
"""


class ChatPipelineError(Exception):
    """Base class for pipeline failures."""


class InvalidMessageError(ChatPipelineError):
    """The message has neither text content nor attachments."""

    def __init__(self, message: str = "Message content or attachment is required"):
        super().__init__(message)


class ConversationNotFoundError(ChatPipelineError):
    """The conversation does not exist or is not owned by the requesting user."""

    def __init__(self, conversation_id=None):
        self.conversation_id = conversation_id
        super().__init__("Chat not found")
