"""Action library: maps action phrases to browser operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import ActionError, MissingPrecondition, UnknownAction
from .session import BrowserSession, SessionPages
from .timestamp import get_formatted_timestamp
from .variables import VariableEnvironment


@dataclass(frozen=True)
class ActionRule:
    """An action name and the phrases that select it.

    Each phrase is a ``(prefix, fragment)`` pair; the fragment, when given,
    must also appear somewhere in the action text.
    """

    name: str
    phrases: Tuple[Tuple[str, Optional[str]], ...]

    def matches(self, action: str) -> bool:
        lowered = action.lower()
        for prefix, fragment in self.phrases:
            if lowered.startswith(prefix.lower()) and (fragment is None or fragment.lower() in lowered):
                return True
        return False


# First match wins: longer phrases sharing a prefix must come first.
ACTION_RULES: Tuple[ActionRule, ...] = (
    ActionRule("open_page", (("Open page", None), ("Открыть страницу", None))),
    ActionRule("enter_username", (("Enter username", None), ("Ввести имя пользователя", None))),
    ActionRule("enter_password", (("Enter password", None), ("Ввести пароль", None))),
    ActionRule("click_login_button", (("Click login button", None), ("Нажать на кнопку входа", None))),
    ActionRule("check_title", (("Should see title", None), ("Должен увидеть заголовок", None))),
    ActionRule("add_to_cart", (("Add product", "to cart"), ("Добавить товар", "в корзину"))),
    ActionRule("open_cart", (("Open cart", None), ("Открыть корзину", None))),
    ActionRule("check_item_in_cart", (("Should see product in cart", None), ("Должен увидеть товар", "в корзине"))),
    ActionRule("proceed_to_checkout", (("Proceed to checkout", None), ("Перейти к оформлению заказа", None))),
    ActionRule("enter_first_name", (("Enter first name", None), ("Ввести имя", None))),
    ActionRule("enter_last_name", (("Enter last name", None), ("Ввести фамилию", None))),
    ActionRule("enter_postal_code", (("Enter postal code", None), ("Ввести почтовый индекс", None))),
    ActionRule("continue_checkout", (("Continue checkout", None), ("Продолжить оформление", None))),
    ActionRule("check_item_in_order", (("Should see product in order", None), ("Должен увидеть товар", "в заказе"))),
    ActionRule("check_price_in_totals", (("Should see in order totals", None), ("Должен увидеть", "в итогах заказа"))),
    ActionRule("finish_order", (("Finish order", None), ("Завершить заказ", None))),
    ActionRule("check_order_finished", (("Should see order completion message", None),
                                        ("Должен увидеть сообщение о завершении", None))),
    ActionRule("open_menu", (("Open menu", None), ("Открыть меню", None))),
    ActionRule("logout", (("Logout", None), ("Выйти из системы", None))),
    ActionRule("remember_price", (("Remember product price", None), ("Запомнить цену товара", None))),
    ActionRule("check_items_count", (("Should see number of items", None), ("Должен увидеть количество товаров", None))),
)


def find_rule(action: str, rules: Sequence[ActionRule] = ACTION_RULES) -> Optional[ActionRule]:
    for rule in rules:
        if rule.matches(action):
            return rule
    return None


def product_name_to_key(product_name: str) -> str:
    return product_name.lower().replace(" ", "-")


def _parameter(parameters: Sequence[str], index: int, label: str) -> str:
    if len(parameters) <= index:
        raise ActionError(f"Action requires parameter #{index + 1} ({label})")
    return parameters[index]


class ActionLibrary:
    """Executes action steps against a lazily started browser session.

    Values that later steps depend on (username, checkout data, remembered
    prices, the current page title) are written to the shared variable
    environment so the executor can substitute and test them.
    """

    def __init__(self, session: BrowserSession, variables: VariableEnvironment) -> None:
        self.session = session
        self.variables = variables
        self.logger = logging.getLogger("keyword_runner.actions")

    async def perform(self, action: str, parameters: List[str]) -> None:
        pages = await self.session.start()
        try:
            rule = find_rule(action)
            if rule is None:
                raise UnknownAction(action)
            handler = getattr(self, f"_do_{rule.name}")
            await handler(pages, parameters)
        except ActionError as exc:
            await self._attach_artifacts(action, exc)
            raise
        except Exception as exc:
            error = ActionError(self._format_error(exc))
            await self._attach_artifacts(action, error)
            raise error from exc

        title = await self.session.page_title()
        if title is not None:
            self.variables.set("pageTitle", title)

    async def close(self) -> None:
        await self.session.close()

    async def _attach_artifacts(self, action: str, error: ActionError) -> None:
        self.logger.error('Action "%s" failed: %s', action, error)
        timestamp = get_formatted_timestamp()
        error.screenshot_path = await self.session.capture_screenshot(timestamp)
        error.video_path = self.session.reserve_failure_video(timestamp)

    @staticmethod
    def _format_error(exc: Exception) -> str:
        if isinstance(exc, PlaywrightTimeoutError):
            return f"Timed out waiting for the page: {exc}"
        return str(exc) or type(exc).__name__

    async def _do_open_page(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.login.open(_parameter(parameters, 0, "url"))

    async def _do_enter_username(self, _pages: SessionPages, parameters: List[str]) -> None:
        self.variables.set("username", _parameter(parameters, 0, "username"))

    async def _do_enter_password(self, pages: SessionPages, parameters: List[str]) -> None:
        password = _parameter(parameters, 0, "password")
        username = self.variables.get("username")
        if not username:
            raise MissingPrecondition("Username was not entered before the password.")
        await pages.login.login(username, password)

    async def _do_click_login_button(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.login.click_login_button()

    async def _do_check_title(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.inventory.check_title(_parameter(parameters, 0, "title"))

    async def _do_add_to_cart(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.inventory.add_to_cart(product_name_to_key(_parameter(parameters, 0, "product")))

    async def _do_open_cart(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.inventory.open_cart()

    async def _do_check_item_in_cart(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.cart.check_item_in_cart(_parameter(parameters, 0, "product"))

    async def _do_proceed_to_checkout(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.cart.checkout()

    async def _do_enter_first_name(self, _pages: SessionPages, parameters: List[str]) -> None:
        self.variables.set("firstName", _parameter(parameters, 0, "first name"))

    async def _do_enter_last_name(self, _pages: SessionPages, parameters: List[str]) -> None:
        self.variables.set("lastName", _parameter(parameters, 0, "last name"))

    async def _do_enter_postal_code(self, _pages: SessionPages, parameters: List[str]) -> None:
        self.variables.set("postalCode", _parameter(parameters, 0, "postal code"))

    async def _do_continue_checkout(self, pages: SessionPages, _parameters: List[str]) -> None:
        first_name = self.variables.get("firstName")
        last_name = self.variables.get("lastName")
        postal_code = self.variables.get("postalCode")
        if not first_name or not last_name or not postal_code:
            raise MissingPrecondition("Not all customer details were entered before continuing checkout.")
        await pages.checkout.fill_information(first_name, last_name, postal_code)

    async def _do_check_item_in_order(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.checkout.check_item(_parameter(parameters, 0, "product"))

    async def _do_check_price_in_totals(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.checkout.check_price_in_totals(_parameter(parameters, 0, "text"))

    async def _do_finish_order(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.checkout.finish_order()

    async def _do_check_order_finished(self, pages: SessionPages, parameters: List[str]) -> None:
        await pages.checkout.check_order_finished(_parameter(parameters, 0, "message"))

    async def _do_open_menu(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.menu.open_menu()

    async def _do_logout(self, pages: SessionPages, _parameters: List[str]) -> None:
        await pages.menu.logout()

    async def _do_remember_price(self, pages: SessionPages, parameters: List[str]) -> None:
        product_name = _parameter(parameters, 0, "product")
        variable_name = _parameter(parameters, 1, "variable name")
        price = await pages.inventory.get_product_price(product_name)
        self.variables.set(variable_name, price)
        self.logger.info("Remembered %s = %s", variable_name, price)

    async def _do_check_items_count(self, pages: SessionPages, parameters: List[str]) -> None:
        raw = _parameter(parameters, 0, "count").strip()
        if not raw.isdigit():
            raise ActionError(f"Item count must be a non-negative integer, got '{raw}'")
        await pages.cart.check_items_count(int(raw))
