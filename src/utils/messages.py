from textual.message import Message

from utils.state import SessionState


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class SignOutRequestedMessage(Message):
    """
    posted by the sidebar once the user confirmed signing out
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Posted at app level whenever the SessionManager publishes a new snapshot.
    The app re-runs the route guard for the current path.
    """

    bubble = True

    def __init__(self, state: SessionState) -> None:
        super().__init__()
        self.state = state


class NavigateMessage(Message):
    """
    Ask the app to go to a route path, e.g. "/user/cart".
    """

    bubble = True

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path


class CartChangedMessage(Message):
    """
    Fired when an item is added to or removed from the cart
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when an order is placed. Listened to by the order status screen.
    """

    bubble = True
