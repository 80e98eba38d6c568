"""
Builds the published text from generated commentary, the original author and a
link back to the original post.

Lengths follow X's weighted counting (twitter-text): links count as 23, CJK
and emoji count as 2.
"""

from twitter_text import parse_tweet

STATUS_URL_TEMPLATE = "https://twitter.com/i/web/status/{post_id}"

MAX_POST_LENGTH = 280
ELLIPSIS = "…"


def post_url(post_id: str) -> str:
    return STATUS_URL_TEMPLATE.format(post_id=post_id)


def weighted_length(text: str) -> int:
    """X's character count for `text`."""
    return parse_tweet(text).weightedLength


def build_reply(commentary: str, handle: str, post_id: str, max_length: int = MAX_POST_LENGTH) -> str:
    """
    Render "<commentary> @handle\\n\\n<link>", trimming the commentary to fit.

    Args:
        commentary: Generated text; surrounding whitespace is dropped.
        handle: Author of the original post, without '@'.
        post_id: Original post ID, used for the link.
        max_length: Weighted length limit for the whole post.

    Returns:
        A post body ready for the X API.
    """
    suffix = f" @{handle}\n\n{post_url(post_id)}"
    body = commentary.strip()
    if weighted_length(body + suffix) <= max_length:
        return body + suffix

    # Longest prefix whose trimmed text still fits; weighted length grows with the prefix.
    low, high = 0, len(body)
    while low < high:
        middle = (low + high + 1) // 2
        candidate = body[:middle].rstrip() + ELLIPSIS + suffix
        if weighted_length(candidate) <= max_length:
            low = middle
        else:
            high = middle - 1
    return body[:low].rstrip() + ELLIPSIS + suffix


def validate_reply(reply_text: str, max_length: int = MAX_POST_LENGTH) -> bool:
    """
    Validate that the reply meets platform constraints.

    Args:
        reply_text: The reply text to validate.
        max_length: Maximum weighted character length allowed for posts.

    Returns:
        True if the reply is acceptable, otherwise False.
    """
    if not reply_text.strip():
        return False
    parsed = parse_tweet(reply_text)
    return parsed.valid and parsed.weightedLength <= max_length
