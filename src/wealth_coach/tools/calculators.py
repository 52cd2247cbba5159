"""Side-effect-free financial calculator tools."""

from typing import Annotated, Literal

from langchain_core.tools import tool

MIN_STOCK_PERCENT = 20
MAX_STOCK_PERCENT = 90
MAX_PAYOFF_MONTHS = 600
MILESTONE_YEARS = 10
DEFAULT_INFLATION = 0.03

RISK_ADJUSTMENT = {"conservative": -10, "moderate": 0, "aggressive": 10}


def stock_allocation_percent(age: int | None, risk_tolerance: str = "moderate") -> int:
    """110 minus age, shifted by risk tolerance and clamped to 20-90."""
    base = 110 - age if age is not None else 70
    percent = base + RISK_ADJUSTMENT.get(risk_tolerance, 0)
    return max(MIN_STOCK_PERCENT, min(MAX_STOCK_PERCENT, percent))


def future_value(principal: float, annual_rate: float, years: int, monthly_contribution: float = 0) -> float:
    """Future value of a lump sum plus monthly contributions, compounded monthly on contributions."""
    fv_principal = principal * ((1 + annual_rate) ** years)

    n_months = years * 12
    if monthly_contribution <= 0:
        fv_contributions = 0.0
    elif annual_rate == 0:
        fv_contributions = monthly_contribution * n_months
    else:
        monthly_rate = annual_rate / 12
        fv_contributions = monthly_contribution * (((1 + monthly_rate) ** n_months - 1) / monthly_rate)

    return fv_principal + fv_contributions


def in_todays_dollars(amount: float, inflation_rate: float, years: int) -> float:
    return amount / ((1 + inflation_rate) ** years)


@tool
def analyze_portfolio_allocation(
    age: Annotated[int, "Investor's age in years"],
    risk_tolerance: Annotated[Literal["conservative", "moderate", "aggressive"], "Risk tolerance level"],
    investment_amount: Annotated[float, "Amount to allocate in dollars"],
) -> dict:
    """Split an investment between stocks, bonds and alternatives.

    Uses the 110-minus-age rule for the stock share, adjusted by risk
    tolerance. Returns percentages, dollar amounts and example funds.
    """
    stocks = stock_allocation_percent(age, risk_tolerance)
    alternatives = 0 if risk_tolerance == "conservative" else 5
    bonds = 100 - stocks - alternatives

    def dollars(percent: int) -> float:
        return round(investment_amount * percent / 100, 2)

    return {
        "age": age,
        "risk_tolerance": risk_tolerance,
        "investment_amount": investment_amount,
        "allocation_percent": {"stocks": stocks, "bonds": bonds, "alternatives": alternatives},
        "allocation_dollars": {
            "stocks": dollars(stocks),
            "bonds": dollars(bonds),
            "alternatives": dollars(alternatives),
        },
        "suggested_funds": {
            "stocks": ["VTI", "VOO"],
            "bonds": ["BND"],
            "alternatives": ["VNQ"] if alternatives else [],
        },
    }


def _simulate_payoff(debts: list[dict], extra_payment: float, order_key) -> dict:
    balances = {d["name"]: float(d["balance"]) for d in debts}
    rates = {d["name"]: float(d["interest_rate"]) / 100 / 12 for d in debts}
    minimums = {d["name"]: float(d.get("min_payment") or 0) for d in debts}
    order = [d["name"] for d in sorted(debts, key=order_key)]

    total_interest = 0.0
    payoff_order = []
    month = 0

    while any(b > 0.005 for b in balances.values()) and month < MAX_PAYOFF_MONTHS:
        month += 1
        budget = extra_payment

        for name in order:
            if balances[name] <= 0:
                # Freed-up minimums roll into the target debt
                budget += minimums[name]
                continue
            interest = balances[name] * rates[name]
            total_interest += interest
            balances[name] += interest
            payment = min(minimums[name], balances[name])
            balances[name] -= payment
            budget += minimums[name] - payment

        for name in order:
            if budget <= 0:
                break
            if balances[name] > 0:
                payment = min(budget, balances[name])
                balances[name] -= payment
                budget -= payment

        for name in order:
            if balances[name] <= 0.005 and name not in payoff_order:
                balances[name] = 0
                payoff_order.append(name)

    paid_off = all(b <= 0.005 for b in balances.values())
    return {
        "months": month if paid_off else None,
        "total_interest": round(total_interest, 2),
        "payoff_order": payoff_order,
        "paid_off": paid_off,
    }


@tool
def calculate_debt_payoff(
    debts: Annotated[
        list[dict],
        "Debts, each with name, balance, interest_rate (annual percent, e.g. 18.9) and min_payment",
    ],
    extra_payment: Annotated[float, "Extra monthly payment available beyond the minimums"] = 0,
) -> dict:
    """Compare the avalanche and snowball debt payoff strategies.

    Avalanche pays the highest interest rate first; snowball pays the
    smallest balance first. Both roll freed-up minimum payments into the
    next debt.
    """
    avalanche = _simulate_payoff(debts, extra_payment, lambda d: -float(d["interest_rate"]))
    snowball = _simulate_payoff(debts, extra_payment, lambda d: float(d["balance"]))

    interest_saved = round(snowball["total_interest"] - avalanche["total_interest"], 2)
    if not avalanche["paid_off"]:
        recommendation = "Payments do not cover the interest; increase the monthly payment first."
    elif interest_saved > 0:
        recommendation = f"Avalanche saves ${interest_saved:,.2f} in interest."
    else:
        recommendation = "Snowball costs no extra interest and gives quicker wins."

    return {
        "total_debt": round(sum(float(d["balance"]) for d in debts), 2),
        "extra_payment": extra_payment,
        "avalanche": avalanche,
        "snowball": snowball,
        "interest_saved_with_avalanche": interest_saved,
        "recommendation": recommendation,
    }


@tool
def project_future_value(
    principal: Annotated[float, "Starting balance in dollars"],
    annual_rate: Annotated[float, "Expected annual return as decimal (e.g., 0.07 for 7%)"],
    years: Annotated[int, "Years until the money is needed"],
    monthly_contribution: Annotated[float, "Amount added every month, in dollars"] = 0,
    inflation_rate: Annotated[float, "Expected annual inflation as decimal"] = DEFAULT_INFLATION,
) -> dict:
    """Project a savings balance forward and state it in today's dollars too.

    ``milestones`` lists the balance at the end of each of the first ten
    years, nominal and inflation-adjusted.
    """
    nominal = future_value(principal, annual_rate, years, monthly_contribution)
    contributed = principal + monthly_contribution * 12 * years
    growth = nominal - contributed
    real = in_todays_dollars(nominal, inflation_rate, years)

    return {
        "initial_investment": principal,
        "monthly_contribution": monthly_contribution,
        "annual_rate_percent": round(annual_rate * 100, 2),
        "inflation_rate_percent": round(inflation_rate * 100, 2),
        "years": years,
        "total_contributed": round(contributed, 2),
        "future_value": round(nominal, 2),
        "future_value_todays_dollars": round(real, 2),
        "total_growth": round(growth, 2),
        "growth_percentage": round(growth / contributed * 100, 2) if contributed > 0 else 0,
        "milestones": _milestones(principal, annual_rate, years, monthly_contribution, inflation_rate),
    }


def _milestones(
    principal: float, annual_rate: float, years: int, monthly_contribution: float, inflation_rate: float
) -> list[dict]:
    milestones = []
    for year in range(1, min(years, MILESTONE_YEARS) + 1):
        balance = future_value(principal, annual_rate, year, monthly_contribution)
        milestones.append(
            {
                "year": year,
                "balance": round(balance, 2),
                "todays_dollars": round(in_todays_dollars(balance, inflation_rate, year), 2),
            }
        )
    return milestones


@tool
def calculate_retirement_needs(
    current_age: Annotated[int, "Current age"],
    retirement_age: Annotated[int, "Desired retirement age"],
    current_savings: Annotated[float, "Current retirement savings in dollars"],
    monthly_contribution: Annotated[float, "Current monthly retirement contribution"],
    desired_monthly_income: Annotated[float, "Desired monthly income in retirement, in today's dollars"],
    annual_return: Annotated[float, "Expected annual return as decimal"] = 0.07,
) -> dict:
    """Estimate the nest egg needed for retirement using the 4% rule."""
    years = max(0, retirement_age - current_age)
    target = desired_monthly_income * 12 / 0.04
    projected = future_value(current_savings, annual_return, years, monthly_contribution)
    gap = max(0.0, target - projected)

    months = years * 12
    if gap <= 0 or months == 0:
        additional_monthly = 0.0 if gap <= 0 else gap
    elif annual_return == 0:
        additional_monthly = gap / months
    else:
        r = annual_return / 12
        additional_monthly = gap * r / ((1 + r) ** months - 1)

    return {
        "years_to_retirement": years,
        "target_nest_egg": round(target, 2),
        "projected_savings": round(projected, 2),
        "shortfall": round(gap, 2),
        "on_track": gap <= 0,
        "additional_monthly_needed": round(additional_monthly, 2),
    }
