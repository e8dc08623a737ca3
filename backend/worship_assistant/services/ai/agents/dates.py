"""Portuguese date formatting shared by the schedule and member responders."""
from datetime import date

# date.weekday(): Monday is 0
WEEKDAYS = ("segunda-feira", "terça-feira", "quarta-feira", "quinta-feira", "sexta-feira", "sábado", "domingo")
MONTHS = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def month_name(day: date) -> str:
    return MONTHS[day.month - 1]


def long_date(day: date) -> str:
    """domingo, 25 de outubro de 2026"""
    return f"{weekday_name(day)}, {day.day:02d} de {month_name(day)} de {day.year}"


def day_and_month(day: date) -> str:
    """25 de outubro"""
    return f"{day.day:02d} de {month_name(day)}"


def short_date(day: date) -> str:
    """25/10/2026"""
    return day.strftime("%d/%m/%Y")


def weekday_short(day: date) -> str:
    """domingo, 25/10"""
    return f"{weekday_name(day)}, {day.strftime('%d/%m')}"
