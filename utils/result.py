from typing import Generic, TypeVar, Optional, Callable, Any, Dict, Union
from http import HTTPStatus

T = TypeVar('T')
U = TypeVar('U')

NO_DATA_MESSAGE = "No data found"


class Result(Generic[T]):
    """
    Outcome of a workbook operation: either data or an error message,
    together with the HTTP status the API should answer with.

    Attributes:
        success (bool): Whether the operation succeeded
        data (Optional[T]): Payload of a successful operation
        error (Optional[str]): Message of a failed or empty operation
        status_code (HTTPStatus): 200 for success, 400 for failure unless given
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error

        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        else:
            self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.OK) -> "Result[T]":
        """Successful result carrying ``data``."""
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.BAD_REQUEST) -> "Result[T]":
        """Failed result with ``error``, 400 unless another status is given."""
        return cls(success=False, error=error, status_code=status_code)

    @classmethod
    def no_data(cls, data: Optional[T] = None, error: str = NO_DATA_MESSAGE) -> "Result[T]":
        """
        Successful but empty result.

        Nothing went wrong, there was simply nothing to merge or summarize,
        so the status stays 200 and ``error`` explains why the data is empty.
        """
        return cls(success=True, data=data, error=error, status_code=HTTPStatus.OK)

    @classmethod
    def invalid_input(cls, error: str = "Invalid input data") -> "Result[T]":
        """Failed result with 400 BAD_REQUEST."""
        return cls(success=False, error=error, status_code=HTTPStatus.BAD_REQUEST)

    @classmethod
    def server_error(cls, error: str = "Internal server error") -> "Result[T]":
        """Failed result with 500 INTERNAL_SERVER_ERROR."""
        return cls(success=False, error=error, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def unwrap_or_raise(self) -> T:
        """
        Get the data or raise if the result is a failure.

        Raises:
            ValueError: With the error message of a failed result
        """
        if not self.is_success():
            raise ValueError(self.error or "Operation failed")
        return self.data  # type: ignore

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """
        Transform the data of a successful result.

        Failures are passed through unchanged, and so is the ``error`` note of
        a no-data result.
        """
        if self.is_success():
            return Result(success=True, data=fn(self.data), error=self.error, status_code=self.status_code)  # type: ignore
        return Result.fail(self.error or "", status_code=self.status_code)  # type: ignore

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """
        Chain another fallible step.

        Short-circuits on failure, otherwise returns ``fn(data)``.
        """
        if not self.is_success():
            return Result.fail(self.error or "", status_code=self.status_code)  # type: ignore
        return fn(self.data)  # type: ignore

    def to_dict(self) -> Dict[str, Any]:
        """
        Body for an API error response.

        Returns:
            Dict[str, Any]: success, status_code, status and data or error
        """
        response = {
            "success": self.success,
            "status_code": self.status_code.value,
            "status": self.status_code.phrase
        }

        if self.is_success():
            response["data"] = self.data
        else:
            response["error"] = self.error

        return response

    def __repr__(self) -> str:
        return f"Result(success={self.success}, status_code={self.status_code!r}, data={self.data!r}, error={self.error!r})"
