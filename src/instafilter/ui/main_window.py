"""
Main Window - The single Instafilter screen.

The window forwards picker, slider, filter-menu and save events to the
FilterEngine and displays whatever output the engine holds. Failures
reported by the engine or the saver are shown as message boxes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QSettings
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from instafilter.core.engine import FilterEngine
from instafilter.core.errors import ImageLoadError, RenderError, SaveError
from instafilter.core.parameters import ParameterKind, ParameterMode
from instafilter.core.settings import AppSettings, save_settings
from instafilter.filters.filter_registry import FilterDescriptor, list_filters
from instafilter.io.image_saver import ImageSaver
from instafilter.io.image_source import IMAGE_FILE_FILTER, pick_image
from instafilter.ui.widgets import ImageView, ParameterSlider

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    The main application window for Instafilter.

    Contains:
    - Image view (click to pick a photo)
    - One slider per parameter kind
    - Change Filter and Save buttons
    - Status bar showing the current filter
    """

    def __init__(
        self,
        settings: AppSettings,
        engine: FilterEngine | None = None,
        config_path: Path | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)

        self.setWindowTitle("Instafilter")
        self.setMinimumSize(480, 640)

        self._app_settings = settings
        self._config_path = config_path
        self._qsettings = QSettings("Instafilter", "Instafilter")
        self._engine = engine or FilterEngine.from_settings(settings)
        self._last_dir = str(Path.home())

        self._saver = ImageSaver(
            settings.library_dir,
            output_format=settings.output_format,
            quality=settings.output_quality,
        )
        self._saver.success_handler = self._on_save_succeeded
        self._saver.error_handler = self._on_save_failed

        self._sliders: dict[ParameterKind, ParameterSlider] = {}

        self._setup_central_widget()
        self._setup_status_bar()
        self._restore_state()
        self._refresh()

    @property
    def engine(self) -> FilterEngine:
        return self._engine

    def _setup_central_widget(self) -> None:
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        self._image_view = ImageView()
        self._image_view.clicked.connect(self._on_pick_image)
        layout.addWidget(self._image_view, 1)

        parameters = self._engine.parameters
        for kind in ParameterKind:
            slider = ParameterSlider(kind, parameters.get(kind))
            slider.value_changed.connect(self._on_parameter_changed)
            self._sliders[kind] = slider
            layout.addWidget(slider)

        buttons = QHBoxLayout()

        self._filter_button = QPushButton("Change Filter")
        self._filter_button.setMenu(self._build_filter_menu())
        buttons.addWidget(self._filter_button)

        buttons.addStretch()

        self._save_button = QPushButton("Save")
        self._save_button.clicked.connect(self._on_save)
        buttons.addWidget(self._save_button)

        layout.addLayout(buttons)
        self.setCentralWidget(central)

    def _build_filter_menu(self) -> QMenu:
        menu = QMenu("Select a filter", self)
        for descriptor in list_filters():
            action = QAction(descriptor.name, self)
            action.setToolTip(descriptor.description)
            action.triggered.connect(
                lambda checked=False, d=descriptor: self._on_filter_selected(d)
            )
            menu.addAction(action)

        menu.addSeparator()
        linked = QAction("Link sliders to intensity", self)
        linked.setCheckable(True)
        linked.setChecked(self._engine.mode is ParameterMode.LINKED)
        linked.toggled.connect(self._on_linked_toggled)
        menu.addAction(linked)
        return menu

    def _setup_status_bar(self) -> None:
        self.statusBar().showMessage("Ready")

    def _restore_state(self) -> None:
        geometry = self._qsettings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)
        last_dir = self._qsettings.value("lastDirectory")
        if last_dir:
            self._last_dir = str(last_dir)

    # --- Engine event handlers ---

    def load_path(self, path: str | Path | None) -> None:
        """Load a photo into the engine (None means the pick was cancelled)."""
        try:
            image = pick_image(path)
        except ImageLoadError as e:
            QMessageBox.warning(self, e.title, str(e))
            return

        if image is None:
            return

        self._last_dir = str(Path(path).parent)
        self._report(self._engine.load_image(image))
        self._refresh()

    def _on_pick_image(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Select a picture",
            self._last_dir,
            IMAGE_FILE_FILTER,
        )
        self.load_path(file_path or None)

    def _on_filter_selected(self, descriptor: FilterDescriptor) -> None:
        self._report(self._engine.select_filter(descriptor))
        self._refresh()

    def _on_parameter_changed(self, kind: ParameterKind, value: float) -> None:
        self._report(self._engine.update_parameter(kind, value))
        self._refresh_image()

    def _on_linked_toggled(self, checked: bool) -> None:
        mode = ParameterMode.LINKED if checked else ParameterMode.INDEPENDENT
        self._app_settings.parameter_mode = mode
        self._report(self._engine.set_mode(mode))
        self._refresh()

    def _on_save(self) -> None:
        error = self._engine.save_output(self._saver)
        if error is not None:
            QMessageBox.warning(self, error.title, str(error))

    def _on_save_succeeded(self, path: Path) -> None:
        self.statusBar().showMessage(f"Saved to {path}", 5000)
        QMessageBox.information(self, "Saved", f"Your picture was saved to {path}.")

    def _on_save_failed(self, error: SaveError) -> None:
        self.statusBar().showMessage("Save failed", 5000)
        QMessageBox.critical(self, "Oops", str(error))

    def _report(self, error: RenderError | None) -> None:
        if error is None:
            return
        self.statusBar().showMessage("Could not apply filter", 5000)
        QMessageBox.warning(self, error.title, str(error))

    # --- View refresh ---

    def _refresh(self) -> None:
        descriptor = self._engine.current_filter
        linked = self._engine.mode is ParameterMode.LINKED
        for kind, slider in self._sliders.items():
            # In linked mode only the intensity slider drives the filter
            if linked:
                applicable = kind is ParameterKind.INTENSITY
            else:
                applicable = descriptor.supports(kind)
            slider.set_applicable(applicable)
        self._filter_button.setText(f"Change Filter ({descriptor.name})")
        self._refresh_image()

    def _refresh_image(self) -> None:
        self._image_view.set_image(self._engine.output_image)

    def closeEvent(self, event) -> None:
        """Persist window state and slider values before closing."""
        self._qsettings.setValue("geometry", self.saveGeometry())
        self._qsettings.setValue("lastDirectory", self._last_dir)

        parameters = self._engine.parameters
        self._app_settings.intensity = parameters.intensity
        self._app_settings.radius = parameters.radius
        self._app_settings.scale = parameters.scale
        self._app_settings.default_filter = self._engine.current_filter.id
        try:
            save_settings(self._app_settings, self._config_path)
        except OSError as e:
            logger.warning("Failed to save settings: %s", e)

        super().closeEvent(event)
