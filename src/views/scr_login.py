from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from views.base_screen import BaseScreen
from views.modal_dialog import QuitConfirmModal


class LoginScreen(BaseScreen):
    """
    Dismisses once the user logged in or chose to browse as a guest.
    Validation and error notices come from the state, which reports them
    through the app's notification handler.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Username")
                    yield Input(placeholder="crio.do", id="input-login-username")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Browse as guest", id="btn-guest")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Username")
                    yield Input(placeholder="at least 6 characters", id="input-reg-username")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    yield Label("Confirm Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-confirm"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key != "enter":
            return
        if self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        elif self.focused == self.query_one("#input-reg-confirm"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if await self.app.state.login(username, pwd):
            self.dismiss()
        else:
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        username = self.query_one("#input-reg-username", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value
        confirm = self.query_one("#input-reg-confirm", Input).value

        if not await self.app.state.register(username, pwd, confirm):
            return

        # hand over to the login tab with the fresh credentials filled in
        self.query_one(TabbedContent).active = "tab-login"
        self.query_one("#input-login-username", Input).value = username
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = pwd
        input_login_pwd.focus()

    @on(Button.Pressed, "#btn-guest")
    def handle_guest(self) -> None:
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitConfirmModal())
