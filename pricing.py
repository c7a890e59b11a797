FEE = 1.65
DRIVER_SHARE = 0.8


def driver_revenue(cost: float, fee: float = FEE, commission: float = DRIVER_SHARE) -> float:
    """Driver's take from one trip fare:
    revenue = (cost - fee) * commission
    A fare smaller than the fee earns the driver nothing.
    """
    raw = (cost - fee) * commission
    raw = max(0.0, raw)
    return round(raw, 2)
