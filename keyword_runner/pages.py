"""Page objects for the shop under test (async Playwright)."""
from __future__ import annotations

from playwright.async_api import Page


class BasePage:
    def __init__(self, page: Page) -> None:
        self.page = page

    async def open(self, url: str) -> None:
        await self.page.goto(url, wait_until="networkidle")

    async def click(self, selector: str) -> None:
        await self.page.click(selector)

    async def type(self, selector: str, text: str) -> None:
        await self.page.fill(selector, text)

    async def get_text(self, selector: str) -> str:
        text = await self.page.text_content(selector)
        return (text or "").strip()

    async def title(self) -> str:
        return await self.page.title()

    async def check_text_equals(self, selector: str, expected: str) -> None:
        actual = await self.get_text(selector)
        if actual != expected:
            raise AssertionError(f"Expected '{expected}' but got '{actual}'")

    async def check_text_contains(self, selector: str, expected: str) -> None:
        actual = await self.get_text(selector)
        if expected not in actual:
            raise AssertionError(f"Expected '{expected}' to be contained in '{actual}'")


class LoginPage(BasePage):
    async def login(self, username: str, password: str) -> None:
        await self.type("#user-name", username)
        await self.type("#password", password)

    async def click_login_button(self) -> None:
        await self.page.wait_for_selector("#login-button", state="visible")
        await self.page.click("#login-button")


class InventoryPage(BasePage):
    async def add_to_cart(self, product_key: str) -> None:
        await self.click(f"#add-to-cart-{product_key}")

    async def open_cart(self) -> None:
        await self.click(".shopping_cart_link")

    async def check_title(self, expected_title: str) -> None:
        await self.check_text_equals(".title", expected_title)

    async def get_product_price(self, product_name: str) -> str:
        item = self.page.locator(".inventory_item").filter(has_text=product_name).first
        text = await item.locator(".inventory_item_price").text_content()
        return (text or "").strip()


class CartPage(BasePage):
    async def check_item_in_cart(self, item_name: str) -> None:
        await self.check_text_equals(".inventory_item_name", item_name)

    async def checkout(self) -> None:
        await self.click("#checkout")

    async def check_items_count(self, expected: int) -> None:
        actual = await self.page.locator(".cart_item").count()
        if actual != expected:
            raise AssertionError(f"Expected {expected} items in the cart but found {actual}")


class CheckoutPage(BasePage):
    async def fill_information(self, first_name: str, last_name: str, postal_code: str) -> None:
        await self.type("#first-name", first_name)
        await self.type("#last-name", last_name)
        await self.type("#postal-code", postal_code)
        await self.click("#continue")

    async def check_item(self, item_name: str) -> None:
        await self.check_text_equals(".inventory_item_name", item_name)

    async def check_price_in_totals(self, expected: str) -> None:
        await self.check_text_contains(".summary_subtotal_label", expected)

    async def finish_order(self) -> None:
        await self.click("#finish")

    async def check_order_finished(self, message: str) -> None:
        await self.check_text_equals(".complete-header", message)


class MenuPage(BasePage):
    async def open_menu(self) -> None:
        await self.click("#react-burger-menu-btn")

    async def logout(self) -> None:
        await self.click("#logout_sidebar_link")
