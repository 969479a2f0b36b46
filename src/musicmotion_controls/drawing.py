from __future__ import annotations

from typing import Tuple

import cv2

from .types import Vec2


IDLE_COLOR = (200, 200, 200)
HOVER_COLOR = (40, 255, 120)
GRAB_COLOR = (0, 200, 255)
ON_COLOR = (100, 200, 100)
OFF_COLOR = (100, 100, 200)


def _px(pt: Vec2) -> Tuple[int, int]:
    return (int(round(pt[0])), int(round(pt[1])))


def state_color(hovering: bool, grabbed: bool):
    if grabbed:
        return GRAB_COLOR
    if hovering:
        return HOVER_COLOR
    return IDLE_COLOR


def draw_point(frame, pt: Vec2, color=(0, 0, 255), radius=5):
    cv2.circle(frame, _px(pt), int(radius), color, -1, lineType=cv2.LINE_AA)
    return frame


def draw_circle(frame, center: Vec2, radius: float, color=(255, 255, 255), thickness=2):
    cv2.circle(frame, _px(center), max(0, int(round(radius))), color, thickness, lineType=cv2.LINE_AA)
    return frame


def draw_line(frame, a: Vec2, b: Vec2, color=(255, 255, 255), thickness=2):
    cv2.line(frame, _px(a), _px(b), color, thickness, cv2.LINE_AA)
    return frame


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_crosshair(frame, pt: Vec2, color=(0, 0, 255), radius=5):
    h, w = frame.shape[:2]
    x, y = _px(pt)
    cv2.line(frame, (x, 0), (x, h - 1), color, 1, cv2.LINE_AA)
    cv2.line(frame, (0, y), (w - 1, y), color, 1, cv2.LINE_AA)
    cv2.circle(frame, (x, y), radius, color, -1, lineType=cv2.LINE_AA)
    return frame
