"""Terminal reports for the loan and projection engine.

Usage:
    python -m fleetledger.cli schedule 500000 --emi 11000 --tenure 60 --rate 8.5 --first 2024-01-01
    python -m fleetledger.cli prepay 300000 100000 --emi 11000 --rate 8.5
    python -m fleetledger.cli project --investment 200000 --value 650000 --loan 450000 \
        --emi 11000 --earnings 25000 --expenses 6000 --years 3
    python -m fleetledger.cli project --investment 200000 --value 700000 --months 6 \
        --total-earnings 150000 --total-operating-expenses 40000 --total-expenses 106000
"""

import argparse
import sys
from datetime import date
from decimal import Decimal

from fleetledger.config import settings
from fleetledger.engine.amortization import generate_schedule, yearly_loan_summary
from fleetledger.engine.prepayment import apply_prepayment, exact_interest_savings
from fleetledger.engine.projection import project
from fleetledger.errors import LoanEngineError
from fleetledger.models.financials import VehicleFinancials


def _money(v) -> str:
    return f"{float(v):,.2f}"


def _header(title: str) -> None:
    print(f"\n{'=' * 64}")
    print(f"  {title}")
    print(f"{'=' * 64}")


def print_schedule(args: argparse.Namespace) -> None:
    schedule = generate_schedule(
        principal=args.principal,
        emi_per_month=args.emi,
        tenure_months=args.tenure,
        annual_rate_percent=args.rate,
        first_installment_date=args.first,
        already_paid_count=args.paid,
    )
    _header(f"EMI Schedule: {_money(args.principal)} at {args.rate}%")
    print(f"  {'#':>4}  {'Due':>10}  {'Interest':>12}  {'Principal':>12}  {'Outstanding':>14}  Paid")
    for e in schedule:
        print(
            f"  {e.month:>4}  {e.due_date.isoformat():>10}  {_money(e.interest):>12}  "
            f"{_money(e.principal):>12}  {_money(e.outstanding):>14}  {'yes' if e.is_paid else ''}"
        )

    _header("By Loan Year")
    for y in yearly_loan_summary(schedule):
        print(
            f"  Year {y['year']:>2}:  principal {_money(y['principal']):>12}  "
            f"interest {_money(y['interest']):>11}  balance {_money(y['ending_balance']):>13}"
        )
    print(f"\n  Installments:     {len(schedule)}")
    print(f"  Total interest:   {_money(schedule.total_interest)}")
    print(f"  Total paid:       {_money(schedule.total_payments)}")
    print()


def print_prepayment(args: argparse.Namespace) -> None:
    result = apply_prepayment(args.outstanding, args.amount, args.emi, args.rate)
    exact = exact_interest_savings(args.outstanding, args.amount, args.emi, args.rate)
    _header("Prepayment Analysis")
    print(f"  Prepayment:         {_money(result.amount)}")
    print(f"  New outstanding:    {_money(result.new_outstanding)}")
    print(f"  Tenure:             {result.current_tenure_months} -> {result.new_tenure_months} months")
    print(f"  Tenure reduced by:  {result.tenure_reduction_months} months")
    print(f"  Interest savings:   {_money(result.interest_savings)}")
    print(f"  (summed interest:   {_money(exact)})")
    print()


def print_projection(args: argparse.Namespace) -> None:
    financials = VehicleFinancials(
        initial_investment=args.investment,
        prepayments=args.prepayments,
        total_earnings=args.total_earnings,
        total_operating_expenses=args.total_operating_expenses,
        total_expenses=(
            args.total_expenses if args.total_expenses is not None else args.total_operating_expenses
        ),
        current_vehicle_value=args.value,
        depreciation_rate=args.depreciation,
        outstanding_loan=args.loan,
        emi_per_month=args.emi,
        annual_interest_rate=args.rate,
        monthly_earnings=args.earnings,
        monthly_expenses=args.expenses,
        months_in_operation=args.months,
    )
    snap = project(
        financials,
        years=args.years,
        increased_emi=args.increased_emi,
        use_net_cash_flow_for_emi=args.net_cash_flow,
        today=date.today(),
    )
    _header(f"Projection ({snap.years} year{'s' if snap.years != 1 else ''})")
    print(f"  Total investment:     {_money(snap.fixed_investment)}")
    print(f"  Earnings:             {_money(snap.projected_earnings)}")
    print(f"  Operating expenses:   {_money(snap.projected_operating_expenses)}")
    print(f"  Expenses incl. EMI:   {_money(snap.projected_total_expenses)}")
    print(f"  Vehicle value:        {_money(snap.projected_depreciated_value)}")
    print(f"  Outstanding loan:     {_money(snap.projected_outstanding_loan)}")
    print(f"  Total return:         {_money(snap.projected_total_return)}")
    print(f"  Profit / loss:        {_money(snap.projected_profit_loss)}")
    print(f"  ROI:                  {float(snap.projected_roi):+.1f}%")
    if snap.break_even_months is not None:
        print(f"  Break-even:           {snap.break_even_months} months ({snap.break_even_date})")
    else:
        print(f"  Break-even:           not within {settings.projection_search_months} months")
    if snap.loan_clearance_months is not None:
        print(f"  Loan clearance:       {snap.loan_clearance_months} months ({snap.loan_clearance_date})")
    print()


def build_parser() -> argparse.ArgumentParser:
    rate = Decimal(str(settings.default_interest_rate))
    parser = argparse.ArgumentParser(description="Vehicle loan and investment reports")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("schedule", help="Print an EMI amortization schedule")
    p.add_argument("principal", type=Decimal)
    p.add_argument("--emi", type=Decimal, required=True)
    p.add_argument("--tenure", type=int, required=True, help="Months")
    p.add_argument("--rate", type=Decimal, default=rate, help="Annual percent")
    p.add_argument("--first", type=date.fromisoformat, default=date.today(), help="First due date (YYYY-MM-DD)")
    p.add_argument("--paid", type=int, default=0, help="Installments already paid")
    p.set_defaults(func=print_schedule)

    p = sub.add_parser("prepay", help="Preview a lump-sum prepayment")
    p.add_argument("outstanding", type=Decimal)
    p.add_argument("amount", type=Decimal)
    p.add_argument("--emi", type=Decimal, required=True)
    p.add_argument("--rate", type=Decimal, default=rate)
    p.set_defaults(func=print_prepayment)

    p = sub.add_parser("project", help="Project returns over a number of years")
    p.add_argument("--years", type=int, default=1)
    p.add_argument("--investment", type=Decimal, required=True, help="Initial investment")
    p.add_argument("--prepayments", type=Decimal, default=Decimal("0"))
    p.add_argument("--value", type=Decimal, required=True, help="Current vehicle value")
    p.add_argument("--depreciation", type=Decimal, default=Decimal(str(settings.default_depreciation_rate)))
    p.add_argument("--loan", type=Decimal, default=Decimal("0"), help="Outstanding loan")
    p.add_argument("--emi", type=Decimal, default=Decimal("0"))
    p.add_argument("--rate", type=Decimal, default=rate)
    p.add_argument("--earnings", type=Decimal, default=None, help="Monthly earnings (default: trailing average)")
    p.add_argument("--expenses", type=Decimal, default=None, help="Monthly operating expenses (default: trailing average)")
    p.add_argument("--months", type=int, default=0, help="Months in operation so far")
    p.add_argument("--total-earnings", type=Decimal, default=Decimal("0"))
    p.add_argument("--total-operating-expenses", type=Decimal, default=Decimal("0"))
    p.add_argument(
        "--total-expenses", type=Decimal, default=None,
        help="Expenses so far including EMIs (default: --total-operating-expenses)",
    )
    p.add_argument("--increased-emi", type=Decimal, default=None)
    p.add_argument("--net-cash-flow", action="store_true", help="Pay monthly surplus towards the loan")
    p.set_defaults(func=print_projection)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except LoanEngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
