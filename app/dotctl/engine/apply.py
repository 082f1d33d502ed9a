"""Apply orchestration.

One apply converges the machine to the requested profiles:

1. take the apply lock (not for dry runs),
2. plan: resolve profiles, apps and dotfile targets,
3. check for high-risk commands,
4. stop here for a dry run,
5. per bundle in dependency order: install the package, link dotfiles,
   run apply hooks,
6. generate the shell init script,
7. record the applied profiles in state.yaml,
8. release the lock.

Every mutation is appended to the operation log as it completes, so a
failed apply can still be rolled back. Nothing is masked: the first
failure aborts the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dotctl.core import condition
from dotctl.core.errors import NonInteractiveStopError, ResolutionError, RiskDeclinedError
from dotctl.core.loader import (
    load_all_profiles,
    load_config,
    load_global_aliases,
    load_state,
    save_state,
)
from dotctl.core.paths import RepoPaths
from dotctl.core.platform import Platform
from dotctl.core.prompt import Prompter
from dotctl.core.resolver import (
    ResolvedDotfile,
    check_target_collisions,
    collect_apps,
    load_bundles,
    resolve_apps,
    resolve_dotfiles,
    resolve_profiles,
)
from dotctl.engine.history import SnapshotStore
from dotctl.engine.hooks import run_hook
from dotctl.engine.linker import Linker, LinkOutcome
from dotctl.engine.lock import ApplyLock
from dotctl.engine.oplog import OperationLog
from dotctl.engine.security import RiskFinding, scan_bundles
from dotctl.library.manager import RecipeLibrary
from dotctl.models.bundle import Bundle
from dotctl.models.config import Config
from dotctl.models.operation import Operation, OperationType
from dotctl.models.profile import Profile
from dotctl.packages.apt import install_apt_package
from dotctl.packages.selection import ManagerFactory, default_factory, resolve_manager_plan
from dotctl.shell.generator import ShellType, duplicate_aliases, generate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplyOptions:
    """Options for one apply invocation.

    Attributes:
        profiles: Profiles to apply.
        dry_run: Plan only, touch nothing.
        allow_risky: Proceed past high-risk commands without asking.
        non_interactive: Fail with exit code 4 instead of prompting.
        run_hooks: Run ``hooks.apply`` commands.
        hook_timeout: Per-hook timeout in seconds (None: config value).
        best_effort: Skip missing apps instead of failing.
    """

    profiles: list[str]
    dry_run: bool = False
    allow_risky: bool = False
    non_interactive: bool = False
    run_hooks: bool = True
    hook_timeout: float | None = None
    best_effort: bool = False


@dataclass(slots=True)
class ApplyPlan:
    """Everything an apply will act on, in execution order."""

    config: Config
    profiles: list[Profile]
    bundles: list[Bundle]
    dotfiles: list[ResolvedDotfile]
    risks: list[RiskFinding]

    @property
    def app_names(self) -> list[str]:
        return [bundle.name for bundle in self.bundles]

    def dotfiles_for(self, app: str) -> list[ResolvedDotfile]:
        return [item for item in self.dotfiles if item.app == app]


@dataclass(slots=True)
class ApplyResult:
    """Outcome of an apply.

    Attributes:
        plan: The executed plan.
        dry_run: Whether the run stopped after planning.
        log_path: Operation log written (None if nothing was recorded).
        links: Link outcomes in order.
        installed: "<package> (<manager>)" entries installed by this run.
        satisfied: Packages that were already installed.
        manual: Apps whose custom install script must be run by hand.
        hooks_run: Number of hooks executed.
        init_script: Generated shell init script.
    """

    plan: ApplyPlan
    dry_run: bool = False
    log_path: Path | None = None
    links: list[LinkOutcome] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)
    satisfied: list[str] = field(default_factory=list)
    manual: list[str] = field(default_factory=list)
    hooks_run: int = 0
    init_script: Path | None = None

    @property
    def snapshots(self) -> int:
        return sum(1 for outcome in self.links if outcome.snapshot is not None)


class ApplyEngine:
    """Runs apply invocations against one repository.

    Args:
        paths: Repository paths.
        platform: Facts for this machine.
        library: Recipe library used for apps missing from ``apps/``.
        factory: Creates available package managers by name.
        prompter: Asks the user for decisions.
    """

    def __init__(
        self,
        paths: RepoPaths,
        platform: Platform,
        *,
        library: RecipeLibrary | None = None,
        factory: ManagerFactory = default_factory,
        prompter: Prompter | None = None,
    ) -> None:
        self.paths = paths
        self.platform = platform
        self.library = library
        self.factory = factory
        self.prompter = prompter if prompter is not None else Prompter()

    def plan(self, options: ApplyOptions) -> ApplyPlan:
        """Resolve profiles, apps and dotfiles without touching anything.

        Raises:
            ResolutionError: On missing profiles or apps, or cycles.
            ConditionError: On malformed conditions.
            ConflictError: If two dotfiles claim the same target.
            SchemaError: If a document is invalid.
        """
        if not options.profiles:
            raise ResolutionError(
                "no profiles to apply",
                hint="Pass profile names, e.g. 'dotctl apply base'.",
            )

        config = load_config(self.paths)
        profiles = resolve_profiles(options.profiles, load_all_profiles(self.paths), self.platform)
        app_names = collect_apps(profiles)
        available = load_bundles(
            app_names, self.paths, self.library, best_effort=options.best_effort
        )
        bundles = resolve_apps(app_names, available, best_effort=options.best_effort)

        for bundle in bundles:
            for hook in bundle.apply_hooks:
                if hook.when:
                    condition.validate(hook.when)

        dotfiles = resolve_dotfiles(bundles, self.platform, self.paths)
        check_target_collisions(dotfiles)
        risks = scan_bundles(
            bundles,
            include_hooks=options.run_hooks,
            include_apt_sources=not self.platform.is_macos,
        )

        logger.info(
            "Planned %d profile(s), %d app(s), %d dotfile(s)",
            len(profiles),
            len(bundles),
            len(dotfiles),
        )
        return ApplyPlan(config, profiles, bundles, dotfiles, risks)

    def apply(self, options: ApplyOptions) -> ApplyResult:
        """Run an apply.

        Raises:
            LockError: If another apply holds the lock.
            NonInteractiveStopError: If a decision is needed without a terminal.
            RiskDeclinedError: If the user declines high-risk commands.
            DotctlError: Any failure from planning or execution.
        """
        prompter = Prompter(interactive=False) if options.non_interactive else self.prompter

        if options.dry_run:
            plan = self.plan(options)
            logger.info("Dry run: no changes made")
            return ApplyResult(plan=plan, dry_run=True)

        with ApplyLock(self.paths.apply_lock):
            plan = self.plan(options)
            self._check_risks(plan, options, prompter)
            if not prompter.interactive:
                self._precheck_decisions(plan)
            return self._execute(plan, options, prompter)

    def _check_risks(self, plan: ApplyPlan, options: ApplyOptions, prompter: Prompter) -> None:
        if not plan.risks or options.allow_risky:
            return
        for finding in plan.risks:
            logger.warning("High-risk command in %s", finding.describe())
        proceed = prompter.confirm(
            f"{len(plan.risks)} high-risk command(s) found. Continue anyway?",
            subject=plan.risks[0].app,
        )
        if not proceed:
            raise RiskDeclinedError(
                "apply cancelled: high-risk commands were not approved",
                subject=plan.risks[0].app,
                hint="Review the commands, then re-run with --allow-risky.",
            )

    def _precheck_decisions(self, plan: ApplyPlan) -> None:
        """Fail before any write when the run would have to prompt."""
        strategies = plan.config.conflict_resolution
        if strategies.dotfiles == "prompt":
            linker = Linker(SnapshotStore(self.paths.history_dir), "prompt")
            for item in plan.dotfiles:
                if linker.needs_decision(item):
                    raise NonInteractiveStopError(
                        f"target {item.target} exists and conflict_resolution.dotfiles is prompt",
                        subject=str(item.target),
                        hint="Re-run interactively or choose a non-interactive dotfile strategy.",
                    )
        if strategies.aliases == "prompt":
            duplicates = duplicate_aliases(plan.bundles)
            if duplicates:
                raise NonInteractiveStopError(
                    f"duplicate aliases need a decision: {', '.join(duplicates)}",
                    subject=duplicates[0],
                    hint="Re-run interactively or set conflict_resolution.aliases.",
                )

    def _execute(self, plan: ApplyPlan, options: ApplyOptions, prompter: Prompter) -> ApplyResult:
        config = plan.config
        log = OperationLog(self.paths.operations_dir)
        store = SnapshotStore(self.paths.history_dir, config.history.max_size_bytes)
        linker = Linker(store, config.conflict_resolution.dotfiles, prompter, log)
        timeout = (
            options.hook_timeout
            if options.hook_timeout is not None
            else config.hooks.timeout_seconds
        )
        result = ApplyResult(plan=plan)

        for bundle in plan.bundles:
            logger.info("Applying %s", bundle.name)
            self._install_package(bundle, config, log, result)
            for item in plan.dotfiles_for(bundle.name):
                result.links.append(linker.link(item))
            if options.run_hooks:
                self._run_hooks(bundle, timeout, log, result)

        shell = ShellType.parse(config.shell or self.platform.shell)
        aliases = load_global_aliases(self.paths).aliases
        result.init_script = generate(
            plan.bundles,
            shell,
            self.paths.init_script,
            aliases,
            strategy=config.conflict_resolution.aliases,
            prompter=prompter,
        )
        log.record(
            Operation(
                type=OperationType.SHELL_GENERATE,
                target=str(result.init_script),
                details={"output_path": str(result.init_script), "shell": shell.value},
            )
        )
        result.log_path = log.path

        applied = set(plan.app_names)
        state = load_state(self.paths)
        for profile in plan.profiles:
            state.add_profile(profile.name, [app for app in profile.apps if app in applied])
        save_state(self.paths, state)
        logger.info("Apply finished: %d operation(s) recorded", len(log))
        return result

    def _install_package(
        self, bundle: Bundle, config: Config, log: OperationLog, result: ApplyResult
    ) -> None:
        package = bundle.package
        if package is None:
            return

        plan = resolve_manager_plan(package, self.platform, config, factory=self.factory)
        if plan is None:
            if package.custom is not None:
                logger.warning(
                    "%s has only a custom install script; run it manually:\n%s",
                    bundle.name,
                    package.custom.script.strip(),
                )
                result.manual.append(bundle.name)
            else:
                logger.warning("No available package manager can install %s", bundle.name)
            return

        for probe in plan.probes:
            if probe.manager.is_installed(probe.package_name):
                logger.info("%s already installed via %s", probe.package_name, probe.name)
                result.satisfied.append(probe.package_name)
                return

        selected = plan.selected
        if selected.name == "apt" and package.apt is not None:
            install_apt_package(selected.manager, package.apt)
        else:
            selected.manager.install(selected.package_name)
        log.record(
            Operation(
                type=OperationType.PACKAGE_INSTALL,
                target=selected.package_name,
                details={
                    "pkg": selected.package_name,
                    "manager": selected.name,
                    "app": bundle.name,
                },
            )
        )
        result.installed.append(f"{selected.package_name} ({selected.name})")

    def _run_hooks(
        self, bundle: Bundle, timeout: float, log: OperationLog, result: ApplyResult
    ) -> None:
        for hook in bundle.apply_hooks:
            if hook.when and not condition.evaluate(hook.when, self.platform):
                logger.debug("Skipping hook for %s: condition not met", bundle.name)
                continue
            run_hook(hook, bundle.name, timeout=timeout, cwd=self.platform.home)
            log.record(
                Operation(
                    type=OperationType.HOOK_RUN,
                    target=bundle.name,
                    details={
                        "run": hook.run,
                        "type": "apply",
                        "app": bundle.name,
                        "when": hook.when or "",
                    },
                )
            )
            result.hooks_run += 1
