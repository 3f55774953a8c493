"""Memberman exceptions."""


class BaseError(Exception):
    """
    Structured exception with a stable code, a human message and extra data.

    Subclasses declare ``_default_messages`` so callers can raise by code only.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "data": dict(self.data),
        }


class MembermanError(BaseError):
    """
    Structured exception for membership, reward and order operations.

    Usage:
        try:
            reward = rewards.transition(reward_id, "used")
        except MembermanError as e:
            if e.code == "REWARD_NOT_FOUND":
                handle_not_found()
    """

    _default_messages = {
        # Rewards
        "INVALID_STATUS": "Status must be one of: active, used, expired",
        "REWARD_NOT_FOUND": "Reward not found",
        "INVALID_REWARD_TYPE": "rewardType must be one of: discount, free_shipping",
        "INVALID_POINTS_COST": "pointsCost must be a positive integer",
        "INVALID_AMOUNT_OFF": "amountOff must be a valid non-negative decimal",
        "INSUFFICIENT_POINTS": "Insufficient points for redemption",
        "BIRTHDAY_NOT_SET": "Member has no birthday on file",
        "NOT_BIRTHDAY_MONTH": "Birthday gifts can only be granted during the birthday month",
        "BIRTHDAY_GIFT_ALREADY_GRANTED": "Birthday gift already granted this year",
        # Membership
        "MEMBER_NOT_FOUND": "Member not found",
        "USER_NOT_FOUND": "User not found",
        "DUPLICATE_MEMBER": "Member with this user already exists",
        "INVALID_USER_REF": "userId must be a valid non-empty string",
        "INVALID_BIRTHDAY_MONTH": "Birthday month must be between 1 and 12",
        "INVALID_BIRTHDAY_DAY": "Birthday day must be between 1 and 31",
        "INVALID_POINTS": "Points must be a valid non-negative integer",
        "INVALID_ANNUAL_SPENDING": "Annual spending must be a valid non-negative number",
        "INVALID_TIER": "Tier must be one of: member, plus, premier",
        "NO_UPDATE_FIELDS": "No valid fields provided for update",
        # Ledger
        "INVALID_ENTRY_TYPE": "Transaction type must be one of: purchase, redeem, birthday_reward",
        "INVALID_AMOUNT": "Amount must be a valid decimal string",
        "MISSING_DESCRIPTION": "Description is required",
        # Orders
        "MISSING_EMAIL": "User email is required",
        # Access
        "FORBIDDEN": "You can only access your own membership data",
        # Lower layers
        "STORAGE_FAILURE": "Storage operation failed",
    }
