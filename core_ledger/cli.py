"""
Interactive Console

Menu-driven front end over LedgerSystem: enter transactions, define interest
rules and print monthly statements.
"""

import sys
from typing import Callable, List, Optional

from .config import get_config
from .logging_config import setup_logging
from .results import InvalidTypeCodeError
from .system import LedgerSystem


MENU = [
    "[T] Input transactions ",
    "[I] Define interest rules",
    "[P] Print statement",
    "[Q] Quit",
]


class LedgerShell:
    """Read-eval-print loop; input and output are injectable for tests"""

    def __init__(
        self,
        ledger: LedgerSystem,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        bank_name: str = "AwesomeGIC Bank"
    ):
        self.ledger = ledger
        self.input_func = input_func
        self.output_func = output_func
        self.bank_name = bank_name

    def _read(self) -> Optional[str]:
        """One line of input, None at end of input"""
        try:
            return self.input_func("> ")
        except EOFError:
            return None

    def _read_fields(self, prompt: str, arity: int) -> Optional[List[str]]:
        """Prompt for one line and split it; None means go back to the menu"""
        self.output_func(prompt)
        self.output_func("(or enter blank to go back to main menu):")
        line = self._read()
        if line is None or not line.strip():
            return None

        fields = line.split()
        if len(fields) != arity:
            self.output_func("Invalid format")
            return None
        return fields

    def run(self) -> None:
        greeting = f"Welcome to {self.bank_name}! What would you like to do?"
        while True:
            self.output_func(greeting)
            for entry in MENU:
                self.output_func(entry)

            line = self._read()
            if line is None:
                self._say_goodbye()
                return

            choice = line.strip().upper()
            if not choice:
                continue
            if choice == "Q":
                self._say_goodbye()
                return

            try:
                self.handle_choice(choice)
            except InvalidTypeCodeError as e:
                self.output_func(f"Error: {e}")

            greeting = "\nIs there anything else you'd like to do?"

    def handle_choice(self, choice: str) -> None:
        if choice == "T":
            self.input_transaction()
        elif choice == "I":
            self.define_interest_rule()
        elif choice == "P":
            self.print_statement()
        else:
            self.output_func("Unknown option.")

    def input_transaction(self) -> None:
        fields = self._read_fields(
            "Please enter transaction details in <Date> <Account> <Type> <Amount> format ", 4
        )
        if fields is None:
            return

        date_text, account_id, type_code, amount_text = fields
        result = self.ledger.add_transaction(date_text, account_id, type_code, amount_text)
        if not result.ok:
            self.output_func(str(result.error))
            return

        self.output_func(self.ledger.print_account_all(account_id).unwrap())

    def define_interest_rule(self) -> None:
        fields = self._read_fields(
            "Please enter interest rules details in <Date> <RuleId> <Rate in %> format ", 3
        )
        if fields is None:
            return

        result = self.ledger.upsert_interest_rule(*fields)
        if not result.ok:
            self.output_func(str(result.error))
            return

        self.output_func(self.ledger.print_interest_rules())

    def print_statement(self) -> None:
        fields = self._read_fields(
            "Please enter account and month to generate the statement <Account> <Year><Month>", 2
        )
        if fields is None:
            return

        result = self.ledger.print_monthly_statement(*fields)
        self.output_func(result.value if result.ok else str(result.error))

    def _say_goodbye(self) -> None:
        self.output_func(f"Thank you for banking with {self.bank_name}.")
        self.output_func("Have a nice day!")


def main() -> None:
    """Console entry point"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)

    with LedgerSystem(config) as ledger:
        try:
            LedgerShell(ledger, bank_name=config.bank_name).run()
        except KeyboardInterrupt:
            print()
            sys.exit(130)


if __name__ == "__main__":
    main()
