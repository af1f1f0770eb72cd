import copy

import pytest

from circuitsense.models import AnalysisResult

# Board photographed square-on: surface (u, v) lands at (100 + 0.8u, 100 + 0.8v).
_PAYLOAD = {
    "boardPose": {
        "corners": {
            "topLeft": {"x": 100, "y": 100},
            "topRight": {"x": 900, "y": 100},
            "bottomRight": {"x": 900, "y": 900},
            "bottomLeft": {"x": 100, "y": 900},
        },
        "confidence": 0.92,
    },
    "components": [
        {
            "id": "U1",
            "type": "ic",
            "name": "ATmega328P",
            "category": "MCU",
            "xmin": 400, "ymin": 400, "xmax": 600, "ymax": 600,
            "status": "ok",
            "causalRole": "Runs the firmware",
            "thermalSignature": "NOMINAL",
            "nets": ["N_5V", "N_GND"],
        },
        {
            "id": "VR1",
            "type": "ic",
            "name": "AMS1117",
            "xmin": 100, "ymin": 100, "xmax": 200, "ymax": 200,
            "status": "faulty",
            "causalRole": "Drops 5V to 3V3 for the radio",
            "thermalSignature": "CRITICAL",
            "failureAnalysis": "Output shorted to ground through C3, regulator in thermal shutdown",
            "nets": ["N_5V"],
        },
        {
            "id": "C3",
            "type": "capacitor",
            "name": "C3 10uF",
            "xmin": 250, "ymin": 100, "xmax": 300, "ymax": 150,
            "status": "suspicious",
            "causalRole": "Bulk decoupling on 3V3",
            "thermalSignature": "WARM",
        },
        {
            "id": "J1",
            "type": "connector",
            "name": "USB",
            "xmin": 0, "ymin": 800, "xmax": 100, "ymax": 1000,
            "status": "unknown",
            "causalRole": "Power input",
            "thermalSignature": "COOL",
        },
    ],
    "nets": [
        {"id": "N_5V", "label": "+5V", "category": "5V", "points": [{"x": 50, "y": 900}, {"x": 150, "y": 150}, {"x": 500, "y": 500}]},
        {"id": "N_GND", "label": "GND", "category": "GND", "points": [{"x": 0, "y": 1000}, {"x": 1000, "y": 1000}]},
    ],
    "steps": [
        {
            "id": "s1",
            "title": "Check VR1 output",
            "description": "Red on VR1 tab, black on USB shield",
            "redProbe": {"x": 150, "y": 150},
            "blackProbe": {"x": 50, "y": 900},
            "expectedRange": {"min": 0, "max": 1, "unit": "V"},
            "reasoning": "Regulator should be off in standby",
            "faultTheory": "VR1 enable stuck high",
        },
        {
            "id": "s2",
            "title": "Standby current",
            "description": "Meter in series with USB supply",
            "redProbe": {"x": 500, "y": 500},
            "blackProbe": {"x": 50, "y": 900},
            "expectedRange": {"min": 10, "max": 20, "unit": "mA"},
            "reasoning": "MCU idle draw",
            "faultTheory": "Leakage through shorted C3",
        },
    ],
    "heuristics": [{"context": "Hot regulator", "inference": "Downstream short", "probability": 0.7}],
    "logicFlow": [
        {"name": "Logic", "description": "MCU", "order": 3, "components": ["U1"]},
        {"name": "Power Input", "description": "USB", "order": 1, "components": ["J1"]},
        {"name": "Regulation", "description": "LDO", "order": 2, "components": ["VR1"]},
    ],
    "safetyNotes": ["Disconnect USB before touching VR1"],
    "generalRecommendation": "Start at the regulator.",
    "estimatedComplexity": "moderate",
}


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(_PAYLOAD)


@pytest.fixture
def analysis(analysis_payload):
    return AnalysisResult.model_validate(analysis_payload)
