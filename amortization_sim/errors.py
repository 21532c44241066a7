"""Exceptions raised by the amortization engine."""


class InvalidInputError(ValueError):
    """Loan parameters or extra payment rejected before any period is computed."""


class DegenerateAmortizationError(ArithmeticError):
    """A fixed installment can no longer cover the interest on a balance.

    Raised by the PRICE term solver and recovered by the re-amortizer, which
    treats the loan as paid off at that point.
    """
