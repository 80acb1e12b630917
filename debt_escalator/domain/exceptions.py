"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AccountNotFoundError(DomainException):
    """No debt record exists for the account id"""

    def __init__(self, account_id: int):
        super().__init__(f"Debt {account_id} not found")
        self.account_id = account_id


class InvalidAmountError(DomainException):
    """Payment amount is below the configured minimum"""

    def __init__(self, amount: int, minimum: int):
        super().__init__(f"Minimum payment is {minimum}, got {amount}")
        self.amount = amount
        self.minimum = minimum


class InsufficientBalanceError(DomainException):
    """Payment exceeds the current balance"""

    def __init__(self, amount: int, balance: int):
        super().__init__(f"Cannot subtract {amount} from balance {balance}")
        self.amount = amount
        self.balance = balance


class StoreFailureError(DomainException):
    """Ledger store read or write failed"""

    pass


class DeliveryError(DomainException):
    """Notification could not be handed to the mail relay"""

    pass
