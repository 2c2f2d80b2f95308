#!/usr/bin/env python3
"""Interactive client for poking at a running budget API by hand."""
import requests
import json
import os
import sys
from datetime import date

BASE_URL = "http://localhost:8000/api/v1"

# The API is stateless, so the client keeps the snapshots between requests
STATE = {
    "budget": None,
    "expenses": []
}

def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')

def print_header(title: str):
    clear_screen()
    print("=" * 50)
    print(f" {title} ".center(50, "="))
    print("=" * 50)
    print()

def get_input(prompt: str, default: str = None) -> str:
    if default:
        result = input(f"{prompt} [{default}]: ").strip()
        if not result:
            return default
        return result
    return input(f"{prompt}: ").strip()

def make_request(method, endpoint, data=None, params=None, verbose=False):
    """Helper function to make requests to the API"""
    url = f"{BASE_URL}{endpoint}"

    if verbose:
        print(f"\nMaking {method.upper()} request to {url}")
        if data:
            print(f"Request data: {json.dumps(data, indent=2)}")

    try:
        if method.lower() == 'get':
            response = requests.get(url, params=params)
        elif method.lower() == 'post':
            response = requests.post(url, json=data, params=params)
        else:
            print(f"Unsupported method: {method}")
            return None

        if 200 <= response.status_code < 300:
            result = response.json() if response.text else {}
            if verbose:
                print(f"Response: {json.dumps(result, indent=2)}")
            return result
        print(f"Error {response.status_code}: {response.text}")
        return None

    except requests.exceptions.RequestException as e:
        print(f"Request error: {str(e)}")
        return None
    except json.JSONDecodeError:
        print(f"Warning: Response was not valid JSON: {response.text}")
        return {}

def print_table(rows):
    print(f"{'date':<12}{'base':>10}{'carry':>10}{'available':>11}{'spent':>10}{'remaining':>11}")
    for row in rows:
        print(
            f"{row['date']:<12}"
            f"{float(row['base_amount']):>10.2f}"
            f"{float(row['carry_over_amount']):>10.2f}"
            f"{float(row['available_amount']):>11.2f}"
            f"{float(row['spent_amount']):>10.2f}"
            f"{float(row['remaining_amount']):>11.2f}"
        )

def require_budget() -> bool:
    if STATE["budget"] is None:
        print("Create a budget first.")
        input("\nPress Enter to continue...")
        return False
    return True

# Budget operations
def create_budget():
    print_header("Create Monthly Budget")

    amount = get_input("Monthly amount", "1500")
    month_of = get_input("Any day in the month", date.today().isoformat())

    result = make_request("post", "/budgets/", {
        "budget": {"monthly_amount": amount, "month_of": month_of},
        "expenses": STATE["expenses"]
    })
    if result and "id" in result:
        STATE["budget"] = result
        print(f"\nBudget {result['id']} covers {result['start_date']} to {result['end_date']}")

    input("\nPress Enter to continue...")

def add_expense():
    print_header("Add Expense")
    if not require_budget():
        return

    expense = {
        "amount": get_input("Amount"),
        "date": get_input("Date", date.today().isoformat()),
        "description": get_input("Description", "Expense"),
        "category_id": get_input("Category", "general")
    }
    STATE["expenses"].append(expense)

    # Regenerate the whole table from the new expense snapshot
    result = make_request("post", "/budgets/refresh", {
        "budget": STATE["budget"],
        "expenses": STATE["expenses"]
    })
    if result:
        STATE["budget"] = result
        print("Allocation table regenerated.")
    else:
        STATE["expenses"].pop()

    input("\nPress Enter to continue...")

def show_allocations():
    print_header("Daily Allocations")
    if not require_budget():
        return

    print_table(STATE["budget"]["daily_allocation"])
    input("\nPress Enter to continue...")

def show_summary():
    print_header("Budget Summary")
    if not require_budget():
        return

    payload = {"budget": STATE["budget"], "expenses": STATE["expenses"]}
    summary = make_request("post", "/budgets/summary", payload)
    if summary:
        for key, value in summary.items():
            print(f"  {key}: {value}")

    today = make_request("post", "/budgets/today", payload)
    if today:
        print(f"\n  Spendable today: {today['spendable_amount']}")

    input("\nPress Enter to continue...")

def change_monthly_amount():
    print_header("Change Monthly Amount")
    if not require_budget():
        return

    amount = get_input("New monthly amount")
    as_of = get_input("Effective from", date.today().isoformat())

    result = make_request("post", "/budgets/update", {
        "budget": STATE["budget"],
        "update": {"monthly_amount": amount, "as_of_date": as_of},
        "expenses": STATE["expenses"]
    })
    if result:
        STATE["budget"] = result
        print_table([row for row in result["daily_allocation"] if row["date"] >= as_of])

    input("\nPress Enter to continue...")

def validate_budget():
    print_header("Validate Budget")
    if not require_budget():
        return

    result = make_request("post", "/allocations/validate", {
        "budget": STATE["budget"],
        "expenses": STATE["expenses"]
    })
    if result:
        if result["is_valid"]:
            print("Budget and expenses are valid.")
        for issue in result["errors"]:
            print(f"  - {issue['field']} [{issue['code']}]: {issue['message']}")

    input("\nPress Enter to continue...")

def main_menu():
    actions = {
        "1": create_budget,
        "2": add_expense,
        "3": show_allocations,
        "4": show_summary,
        "5": change_monthly_amount,
        "6": validate_budget
    }
    while True:
        print_header("Budget Pacer Client")
        print("1. Create Monthly Budget")
        print("2. Add Expense")
        print("3. Show Daily Allocations")
        print("4. Show Summary")
        print("5. Change Monthly Amount")
        print("6. Validate")
        print("0. Exit")

        choice = get_input("\nEnter your choice")
        if choice == "0":
            break
        action = actions.get(choice)
        if action:
            action()

if __name__ == "__main__":
    try:
        # Check if server is running
        requests.get(f"{BASE_URL}/budgets/period", params={"month_of": date.today().isoformat()})
        main_menu()
    except requests.ConnectionError:
        print(f"Error: Cannot connect to the API at {BASE_URL}")
        print("Make sure your FastAPI server is running.")
        sys.exit(1)
