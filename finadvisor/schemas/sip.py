from pydantic import BaseModel


class SipRequest(BaseModel):
    monthlyInvestment: float | str | None = None
    rate: float | str | None = None
    years: float | str | None = None


class SipResult(BaseModel):
    monthlyInvestment: float
    annualRate: float
    years: float
    totalInvested: float
    estimatedReturns: float
    finalAmount: float
