from analysis.core_analysis import CoreAnalysisConfig
from analysis.resources import ResourceTracker
from analysis.rotation import RotationWindowAnalyzer
from console_table import console

ATTACK_ID = 7
REQUIESCAT_ID = 7383
HOLY_SPIRIT_ID = 7384

REQUIESCAT_STATUS_ID = 1368


class RequiescatAnalyzer(RotationWindowAnalyzer):
    MP_TICK_AMOUNT = 141
    MP_THRESHOLD = 0.8
    EXPECTED_HOLY_SPIRITS = 5

    def __init__(self, source_id, resources: ResourceTracker):
        super().__init__(
            source_id,
            resources,
            opener_action_id=REQUIESCAT_ID,
            status_id=REQUIESCAT_STATUS_ID,
            qualifying_action_id=HOLY_SPIRIT_ID,
            expected_count=self.EXPECTED_HOLY_SPIRITS,
            no_op_action_id=ATTACK_ID,
            resource_threshold=self.MP_THRESHOLD,
            # Allow for inaccuracies of 1 MP tick
            resource_tick_amount=self.MP_TICK_AMOUNT,
        )

    def print(self):
        console.print(
            f"* You missed {self.errors.missed_qualifying_actions} Holy Spirits "
            "during Requiescat"
        )
        console.print(
            f"* You used Requiescat {self.errors.missed_opener_buffs} times "
            f"under {self.MP_THRESHOLD:.0%} MP"
        )

    def report(self):
        return {
            "requiescat": {
                "missed_holy_spirits": self.errors.missed_qualifying_actions,
                "missed_requiescat_buffs": self.errors.missed_opener_buffs,
                "windows": self.window_reports(),
            }
        }


class PaladinAnalysisConfig(CoreAnalysisConfig):
    BUFF_STATUS_IDS = frozenset({REQUIESCAT_STATUS_ID})

    def get_analyzers(
        self, fight, combatants, enemies, resources, buff_ids=(), debuff_ids=()
    ):
        return super().get_analyzers(
            fight, combatants, enemies, resources, buff_ids, debuff_ids
        ) + [
            RequiescatAnalyzer(fight.source.id, resources),
        ]
