from analysis.core_analysis import CoreAnalysisConfig
from analysis.entities import ActorResolver, EntityTracker, EventSink, PetOwnerResolver
from analysis.invulns import InvulnTracker
from analysis.paladin_analysis import (
    HOLY_SPIRIT_ID,
    REQUIESCAT_ID,
    PaladinAnalysisConfig,
)
from analysis.resources import ResourceTracker
from report import Fight


class Analyzer:
    JOB_ANALYSIS_CONFIGS = {
        "Default": CoreAnalysisConfig,
        "Paladin": PaladinAnalysisConfig,
    }

    def __init__(self, fight: Fight, buff_ids=(), debuff_ids=(), invulns=()):
        self._fight = fight
        self._events = self._filter_events()
        self.__job = None
        self._analysis_config = self.JOB_ANALYSIS_CONFIGS.get(
            self._detect_job(),
            self.JOB_ANALYSIS_CONFIGS["Default"],
        )()
        self._buff_ids = buff_ids
        self._debuff_ids = debuff_ids
        self._sink = EventSink()
        self._invuln_tracker = InvulnTracker(fight)
        for invuln in invulns:
            self._invuln_tracker.add_invuln(**invuln)
        self._combatants = None
        self._enemies = None
        self._analyzers = []

    def _get_combatants(self):
        if self._combatants is None:
            resolver = PetOwnerResolver(
                ActorResolver(self._fight.friendlies), self._fight.source.pets
            )
            self._combatants = EntityTracker(
                "combatants", self._fight, resolver, self._invuln_tracker, self._sink
            )
        return self._combatants

    def _get_enemies(self):
        if self._enemies is None:
            self._enemies = EntityTracker(
                "enemies",
                self._fight,
                ActorResolver(self._fight.enemies),
                self._invuln_tracker,
                self._sink,
            )
        return self._enemies

    def _preprocess_events(self):
        """Run the trackers over the log, returning it with the derived stack
        change events placed right after the event that caused them"""
        combatants = self._get_combatants()
        enemies = self._get_enemies()
        events = []

        for event in self._events:
            self._invuln_tracker.preprocess_event(event)
            combatants.preprocess_event(event)
            enemies.preprocess_event(event)

            events.append(event)
            events.extend(self._sink.drain())

        return events

    def _detect_job(self):
        if not self.__job:

            def detect():
                for event in self._events:
                    if (
                        event["type"] == "cast"
                        and self._fight.by_player(event)
                        and event["abilityGameID"] in (REQUIESCAT_ID, HOLY_SPIRIT_ID)
                    ):
                        return "Paladin"

                return None

            self.__job = detect()
        return self.__job

    def _involves_player(self, event):
        return self._fight.by_player(event) or self._fight.to_player(event)

    def _involves_pet(self, event):
        return self._fight.is_player_pet(
            event.get("sourceID")
        ) or self._fight.is_player_pet(event.get("targetID"))

    def _filter_events(self):
        """Remove any events we don't care to analyze"""
        events = []

        for event in self._fight.events:
            # the trackers need these whoever they concern
            if event["type"] in ("complete", "targetabilityupdate"):
                events.append(event)
                continue

            # We're neither the source nor the target
            if not self._involves_player(event) and not self._involves_pet(event):
                continue

            events.append(event)

        if not any(event["type"] == "complete" for event in events):
            events.append(
                {
                    "type": "complete",
                    "timestamp": self._fight.end_time,
                    "sourceID": None,
                    "targetID": None,
                }
            )
        return events

    def analyze(self):
        events = self._preprocess_events()

        resources = ResourceTracker(self._fight.source.id)
        analyzers = [resources, self._get_combatants(), self._get_enemies()]
        analyzers.extend(
            self._analysis_config.get_analyzers(
                self._fight,
                self._get_combatants(),
                self._get_enemies(),
                resources,
                self._buff_ids,
                self._debuff_ids,
            )
        )
        self._analyzers = analyzers

        for event in events:
            for analyzer in analyzers:
                if self._involves_player(event) or (
                    analyzer.INCLUDE_PET_EVENTS and self._involves_pet(event)
                ):
                    analyzer.add_event(event)

        analysis = {}
        for analyzer in analyzers:
            analysis.update(**analyzer.report())

        return {
            "fight_metadata": {
                "source": self._fight.source.name,
                "encounter": self._fight.encounter.name,
                "start_time": self._fight.start_time,
                "end_time": self._fight.end_time,
                "duration": self._fight.duration,
            },
            "analysis": analysis,
            "job": self._detect_job(),
        }

    def print(self):
        for analyzer in self._analyzers:
            analyzer.print()


def analyze(fight: Fight, buff_ids=(), debuff_ids=(), invulns=()):
    analyzer = Analyzer(fight, buff_ids, debuff_ids, invulns)
    return analyzer.analyze()
