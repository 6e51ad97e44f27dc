from analysis.entities import EntityTracker
from analysis.resources import ResourceTracker
from analysis.stacks import BuffStackAnalyzer
from analysis.uptime import StatusUptimeAnalyzer
from report import Fight


class CoreAnalysisConfig:
    # statuses always reported for the job, on top of the requested ones
    BUFF_STATUS_IDS = frozenset()
    DEBUFF_STATUS_IDS = frozenset()

    def get_analyzers(
        self,
        fight: Fight,
        combatants: EntityTracker,
        enemies: EntityTracker,
        resources: ResourceTracker,
        buff_ids=(),
        debuff_ids=(),
    ):
        buff_ids = self.BUFF_STATUS_IDS | set(buff_ids)
        debuff_ids = self.DEBUFF_STATUS_IDS | set(debuff_ids)
        return [
            BuffStackAnalyzer(buff_ids | debuff_ids),
            StatusUptimeAnalyzer(fight, combatants, buff_ids, "buff_uptimes"),
            StatusUptimeAnalyzer(fight, enemies, debuff_ids, "debuff_uptimes"),
        ]
