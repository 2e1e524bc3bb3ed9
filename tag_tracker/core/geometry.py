#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tag_tracker/core/geometry.py
Utilitaires géométriques sans état - Version 1.0

Les angles d'Euler suivent la convention lacet/tangage/roulis (Z-Y-X).
La décomposition est singulière (gimbal lock) quand le tangage approche
±π/2 ; aucun traitement particulier n'est fait dans ce cas.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

TWO_PI = 2.0 * math.pi

# Inversion de l'axe Y caméra avant extraction des angles
CAMERA_AXIS_FLIP = np.array([
    [1.0, 0.0, 0.0],
    [0.0, -1.0, 0.0],
    [0.0, 0.0, 1.0],
])


@dataclass(frozen=True)
class CameraIntrinsics:
    """Paramètres intrinsèques sans distorsion (pixels)"""
    fx: float
    fy: float
    px: float
    py: float

    @classmethod
    def centered(cls, fx: float, fy: float, width: int, height: int) -> "CameraIntrinsics":
        return cls(fx=fx, fy=fy, px=width / 2, py=height / 2)

    def as_matrix(self) -> np.ndarray:
        return np.array([
            [self.fx, 0.0, self.px],
            [0.0, self.fy, self.py],
            [0.0, 0.0, 1.0],
        ])


def normalize_angle(t: float) -> float:
    """Ramène un angle dans [-π, π]"""
    if -math.pi <= t <= math.pi:
        return t

    # Branche négative réduite avec une période négative (pas de saut en 0)
    if t >= 0.0:
        return math.fmod(t + math.pi, TWO_PI) - math.pi
    return math.fmod(t - math.pi, -TWO_PI) + math.pi


def rotation_to_euler(rotation: np.ndarray) -> Tuple[float, float, float]:
    """Décompose une matrice de rotation orthonormée en (yaw, pitch, roll)"""
    r = np.asarray(rotation, dtype=float)

    yaw = normalize_angle(math.atan2(r[1, 0], r[0, 0]))
    c = math.cos(yaw)
    s = math.sin(yaw)
    pitch = normalize_angle(math.atan2(-r[2, 0], r[0, 0] * c + r[1, 0] * s))
    roll = normalize_angle(math.atan2(r[0, 2] * s - r[1, 2] * c, -r[0, 1] * s + r[1, 1] * c))
    return yaw, pitch, roll


def describe_detection(detection, marker_size: float, fx: float, fy: float,
                       px: float, py: float) -> Tuple[np.ndarray, np.ndarray, str]:
    """Pose d'une détection par rapport à la caméra et texte de debug

    Args:
        detection: Détection brute (id + relative_translation_rotation)
        marker_size: Côté physique du marqueur en mètres
        fx, fy, px, py: Intrinsèques caméra en pixels

    Returns:
        (translation, rotation, texte) ; translation et rotation sont celles
        fournies par le détecteur, non corrigées
    """
    translation, rotation = detection.relative_translation_rotation(marker_size, fx, fy, px, py)
    translation = np.asarray(translation, dtype=float).reshape(3)
    rotation = np.asarray(rotation, dtype=float).reshape(3, 3)

    yaw, pitch, roll = rotation_to_euler(CAMERA_AXIS_FLIP @ rotation)

    text = (
        f"Id: {detection.id}"
        f", distance={np.linalg.norm(translation):g}"
        f"m, x={translation[0]:g}"
        f", y={translation[1]:g}"
        f", z={translation[2]:g}"
        f", yaw={yaw:g}"
        f", pitch={pitch:g}"
        f", roll={roll:g}"
    )
    return translation, rotation, text
