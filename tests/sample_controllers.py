"""Controllers imported by name in handler and app tests."""

from wren.http.request import Request


class Greeter:
    def greet(self, name: str) -> str:
        return f"hello {name}"


class UserController:
    def __init__(self, greeter: Greeter) -> None:
        self.greeter = greeter

    def index(self) -> list[str]:
        return ["alice", "bob"]

    def show(self, id: str, request: Request) -> dict[str, str]:
        return {"id": id, "path": request.path, "greeting": self.greeter.greet(id)}

    async def update(self, id: str, name: str = "anonymous") -> dict[str, str]:
        return {"id": id, "name": name}

    @staticmethod
    def health() -> str:
        return "ok"

    @classmethod
    def kind(cls) -> str:
        return cls.__name__


class InvokableController:
    def __call__(self) -> str:
        return "invoked"


not_a_class = "just a string"
