"""
Widgets - Image preview area and parameter sliders.
"""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QSizePolicy,
    QSlider,
    QWidget,
)

from instafilter.core.data_types import ImageData
from instafilter.core.parameters import ParameterKind, domain


def image_to_qimage(image: ImageData) -> QImage:
    """Convert ImageData to a QImage that owns its pixel data."""
    pil_img = image.to_pil()

    if pil_img.mode == "RGBA":
        data = pil_img.tobytes("raw", "RGBA")
        bytes_per_line = pil_img.width * 4
        qimg = QImage(data, pil_img.width, pil_img.height, bytes_per_line, QImage.Format.Format_RGBA8888)
    else:
        pil_img = pil_img.convert("RGB")
        data = pil_img.tobytes("raw", "RGB")
        bytes_per_line = pil_img.width * 3
        qimg = QImage(data, pil_img.width, pil_img.height, bytes_per_line, QImage.Format.Format_RGB888)

    # Must copy - data goes out of scope
    return qimg.copy()


class ImageView(QLabel):
    """
    Shows the filtered photo, or a prompt to pick one.

    Signals:
        clicked: Emitted when the user clicks the view
    """

    clicked = Signal()

    PLACEHOLDER = "Tap to select a picture"

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self._pixmap: QPixmap | None = None

        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setMinimumSize(320, 240)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setStyleSheet("""
            QLabel {
                background-color: #6c7086;
                color: white;
                font-weight: bold;
                font-size: 16px;
            }
        """)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.set_image(None)

    def set_image(self, image: ImageData | None) -> None:
        if image is None:
            self._pixmap = None
            self.setPixmap(QPixmap())
            self.setText(self.PLACEHOLDER)
            return

        self._pixmap = QPixmap.fromImage(image_to_qimage(image))
        self.setText("")
        self._update_scaled()

    def _update_scaled(self) -> None:
        if self._pixmap is None:
            return
        self.setPixmap(self._pixmap.scaled(
            self.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._update_scaled()

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()
        super().mousePressEvent(event)


class ParameterSlider(QWidget):
    """
    Labelled slider for one parameter kind.

    Signals:
        value_changed: Emitted with (kind, value) when the user moves the slider
    """

    value_changed = Signal(object, float)

    # Slider positions per unit of the parameter domain
    _STEPS = {
        ParameterKind.INTENSITY: 1000,
        ParameterKind.RADIUS: 10,
        ParameterKind.SCALE: 100,
    }

    def __init__(self, kind: ParameterKind, value: float, parent: QWidget | None = None):
        super().__init__(parent)
        self.kind = kind
        self._scale = self._STEPS[kind]

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._name_label = QLabel(kind.label)
        self._name_label.setMinimumWidth(70)

        bounds = domain(kind)
        self._slider = QSlider(Qt.Orientation.Horizontal)
        self._slider.setMinimum(int(round(bounds.minimum * self._scale)))
        self._slider.setMaximum(int(round(bounds.maximum * self._scale)))

        self._value_label = QLabel()
        self._value_label.setMinimumWidth(50)
        self._value_label.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)

        layout.addWidget(self._name_label)
        layout.addWidget(self._slider, 1)
        layout.addWidget(self._value_label)

        self.set_value(value)
        self._slider.valueChanged.connect(self._on_slider_moved)

    def value(self) -> float:
        return self._slider.value() / self._scale

    def set_value(self, value: float) -> None:
        """Move the slider without emitting value_changed."""
        self._slider.blockSignals(True)
        self._slider.setValue(int(round(value * self._scale)))
        self._slider.blockSignals(False)
        self._update_label()

    def set_applicable(self, applicable: bool) -> None:
        """Grey out the slider for filters that ignore this parameter."""
        self._slider.setEnabled(applicable)
        self._name_label.setEnabled(applicable)
        self._value_label.setEnabled(applicable)
        self.setToolTip("" if applicable else f"{self.kind.label} does not affect this filter")

    def _update_label(self) -> None:
        self._value_label.setText(f"{self.value():.2f}")

    def _on_slider_moved(self, _position: int) -> None:
        self._update_label()
        self.value_changed.emit(self.kind, self.value())
