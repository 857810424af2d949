from __future__ import annotations

import logging
from typing import List, Optional

from PySide6 import QtCore, QtWidgets

from core.parameter_curve import format_multiplier
from shared.models import DeviceDescriptor

logger = logging.getLogger(__name__)

SLIDER_TICKS = 1000


class SettingsPanel(QtWidgets.QFrame):
    """Settings overlay: input device, resolution slider, apply/cancel."""

    deviceSelected = QtCore.Signal(str)
    positionChanged = QtCore.Signal(float)
    applyRequested = QtCore.Signal()
    cancelRequested = QtCore.Signal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("settingsPanel")
        self.setFrameShape(QtWidgets.QFrame.Shape.StyledPanel)
        self.setAutoFillBackground(True)
        self._init_ui()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _init_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(8)

        title = QtWidgets.QLabel("Settings")
        title.setStyleSheet("font-weight: bold; font-size: 14pt;")
        layout.addWidget(title)

        form = QtWidgets.QFormLayout()
        form.setSpacing(6)

        self.device_combo = QtWidgets.QComboBox()
        self.device_combo.setMinimumWidth(220)
        self.device_combo.activated.connect(self._on_device_activated)
        form.addRow("Device:", self.device_combo)

        resolution_row = QtWidgets.QHBoxLayout()
        self.resolution_slider = QtWidgets.QSlider(QtCore.Qt.Orientation.Horizontal)
        self.resolution_slider.setRange(0, SLIDER_TICKS)
        self.resolution_slider.valueChanged.connect(self._on_slider_moved)
        self.resolution_label = QtWidgets.QLabel("1.0")
        self.resolution_label.setMinimumWidth(36)
        self.resolution_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignRight | QtCore.Qt.AlignmentFlag.AlignVCenter)
        resolution_row.addWidget(self.resolution_slider, 1)
        resolution_row.addWidget(self.resolution_label)
        form.addRow("Resolution:", resolution_row)
        layout.addLayout(form)

        buttons = QtWidgets.QHBoxLayout()
        buttons.addStretch(1)
        self.cancel_btn = QtWidgets.QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self.cancelRequested.emit)
        self.apply_btn = QtWidgets.QPushButton("Apply")
        self.apply_btn.setDefault(True)
        self.apply_btn.clicked.connect(self.applyRequested.emit)
        buttons.addWidget(self.cancel_btn)
        buttons.addWidget(self.apply_btn)
        layout.addLayout(buttons)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def set_devices(self, descriptors: List[DeviceDescriptor], selected: Optional[str] = None) -> None:
        self.device_combo.blockSignals(True)
        try:
            self.device_combo.clear()
            for descriptor in descriptors:
                label = f"{descriptor.name} (current)" if descriptor.selected else descriptor.name
                self.device_combo.addItem(label, descriptor.name)
        finally:
            self.device_combo.blockSignals(False)
        if selected is not None:
            self.set_selected_device(selected)

    def set_selected_device(self, name: str) -> None:
        index = self.device_combo.findData(name)
        if index < 0:
            return
        self.device_combo.blockSignals(True)
        self.device_combo.setCurrentIndex(index)
        self.device_combo.blockSignals(False)

    def set_resolution(self, multiplier: float, position: float) -> None:
        self.resolution_slider.blockSignals(True)
        self.resolution_slider.setValue(int(round(position * SLIDER_TICKS)))
        self.resolution_slider.blockSignals(False)
        self.set_resolution_label(multiplier)

    def set_resolution_label(self, multiplier: float) -> None:
        self.resolution_label.setText(format_multiplier(multiplier))

    def set_busy(self, busy: bool) -> None:
        for widget in (self.device_combo, self.resolution_slider, self.apply_btn, self.cancel_btn):
            widget.setEnabled(not busy)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _on_device_activated(self, index: int) -> None:
        name = self.device_combo.itemData(index)
        if name is not None:
            self.deviceSelected.emit(str(name))

    def _on_slider_moved(self, value: int) -> None:
        self.positionChanged.emit(value / float(SLIDER_TICKS))


__all__ = ["SettingsPanel", "SLIDER_TICKS"]
