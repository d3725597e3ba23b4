"""
Interactive edit session.

Holds the current value vector of one product, revalidates on every edit,
and rebuilds geometry on a single background worker after a debounce
delay. Builds are tagged with increasing sequence numbers; only the
latest one is ever applied, and every other Solid is disposed.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import List, Optional
import logging
import threading

from .config import KernelConfig, SessionConfig
from .errors import PartsmithError
from .kernel import Mesh, Solid, ensure_kernel
from .parameters import ParameterValues
from .products import DimensionReadout, Product
from .rounding import round_parameter
from .validation import ValidationResult


logger = logging.getLogger(__name__)


class EditSession:
    """
    Edit/rebuild loop for one product.

    Usage:
        with EditSession(product) as session:
            session.edit("length", 80)
            session.commit()
            session.wait()
            mesh = session.mesh()
    """

    def __init__(
        self,
        product: Product,
        config: Optional[SessionConfig] = None,
        kernel=None,
        kernel_config: Optional[KernelConfig] = None,
    ):
        self.product = product
        self.config = config or SessionConfig()
        self.kernel_config = kernel_config or KernelConfig()
        self._kernel = kernel
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"build-{product.slug}")
        self._futures: List[Future] = []
        self._timer: Optional[threading.Timer] = None
        self._sequence = 0
        self._applied_sequence = 0
        self._solid: Optional[Solid] = None
        self._closed = False
        self.build_error: Optional[PartsmithError] = None

        self._values = self._adjusted(product.defaults())
        self.validation = product.validate(self._values)
        self.commit()

    def __enter__(self) -> 'EditSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def values(self) -> ParameterValues:
        with self._lock:
            return dict(self._values)

    @property
    def solid(self) -> Optional[Solid]:
        """The Solid of the latest successful build, if any."""
        with self._lock:
            return self._solid

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently submitted build."""
        return self._sequence

    @property
    def applied_sequence(self) -> int:
        """Sequence number whose result is currently shown."""
        return self._applied_sequence

    @property
    def pending(self) -> bool:
        """True while a debounce timer is waiting to commit."""
        with self._lock:
            return self._timer is not None

    def _adjusted(self, values) -> ParameterValues:
        return self.product.adjust(values, self.config.max_adjust_iterations).values

    def _check_open(self) -> None:
        if self._closed:
            raise PartsmithError("Edit session is closed")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def edit(self, parameter_id: str, value: float) -> ValidationResult:
        """
        Change one raw value.

        The value is rounded to the parameter step, resolution and
        precision and clamped to its schema bounds, then validation is
        recomputed immediately; a rebuild is scheduled after
        the debounce delay, restarting the delay on every edit.
        """
        self._check_open()
        if parameter_id not in self.product.schema:
            raise KeyError(f"{self.product.id} has no parameter {parameter_id!r}")

        with self._lock:
            self._values[parameter_id] = round_parameter(value, self.product.schema[parameter_id])
            self.validation = self.product.validate(self._values)
            self._cancel_timer()
            self._timer = threading.Timer(self.config.debounce_seconds, self._on_timer)
            self._timer.daemon = True
            self._timer.start()
            return self.validation

    def _on_timer(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._timer = None
        self.commit()

    def commit(self) -> Optional[int]:
        """
        Submit a rebuild of the current values now.

        Returns the build's sequence number, or None when the values are
        invalid (the errors stay available on `validation`).
        """
        self._check_open()
        with self._lock:
            self._cancel_timer()
            if not self.validation.is_valid:
                logger.debug(
                    f"{self.product.id}: not building, {len(self.validation.errors)} validation error(s)"
                )
                return None

            adjusted = self._adjusted(self._values)
            validation = self.product.validate(adjusted)
            self._values = adjusted
            self.validation = validation
            if not validation.is_valid:
                return None

            self._sequence += 1
            sequence = self._sequence
            future = self._executor.submit(self._build, sequence, dict(adjusted))
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)
            return sequence

    def _is_latest(self, sequence: int) -> bool:
        return sequence == self._sequence

    def _build(self, sequence: int, values: ParameterValues) -> None:
        if not self._is_latest(sequence):
            logger.info(f"{self.product.id}: build #{sequence} superseded before start")
            return

        try:
            if self._kernel is None:
                ensure_kernel()
            solid = self.product.build(values, self._kernel)
        except PartsmithError as e:
            with self._lock:
                if self._is_latest(sequence):
                    logger.warning(f"{self.product.id}: build #{sequence} failed: {e}")
                    self.build_error = e
                else:
                    logger.info(f"{self.product.id}: dropping error from stale build #{sequence}")
            return

        with self._lock:
            if not self._is_latest(sequence) or self._closed:
                logger.info(f"{self.product.id}: discarding stale build #{sequence}")
                solid.dispose()
                return
            previous = self._solid
            if previous is not None:
                previous.dispose()
            self._solid = solid
            self._applied_sequence = sequence
            self.build_error = None

    def reset(self) -> Optional[int]:
        """Restore default values and rebuild."""
        self._check_open()
        with self._lock:
            self._values = self._adjusted(self.product.defaults())
            self.validation = self.product.validate(self._values)
            return self.commit()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until all submitted builds have finished."""
        with self._lock:
            futures = list(self._futures)
        done, _ = wait_futures(futures, timeout=timeout)
        for future in done:
            future.result()

    def mesh(self) -> Optional[Mesh]:
        """Tessellate the current Solid at the configured display tolerances."""
        with self._lock:
            if self._solid is None:
                return None
            return self._solid.mesh(
                self.kernel_config.mesh_tolerance, self.kernel_config.angular_tolerance,
            )

    def dimensions(self) -> List[DimensionReadout]:
        return self.product.dimensions(self.values)

    def close(self) -> None:
        """Cancel pending work, finish the running build and release the Solid."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_timer()
        self._executor.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            if self._solid is not None:
                self._solid.dispose()
                self._solid = None
