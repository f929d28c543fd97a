import queue

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from maintenance.constants import TransitionId
from maintenance.services.camera import CameraDecodeAdapter, ScanRouter
from maintenance.services.opencv_backend import OpenCVVideoBackend
from maintenance.services.scanner import InquiryService, ScanDispatcher, ScanSession


class Command(BaseCommand):
    help = 'Scan maintenance labels with a local camera (kiosk mode)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--transition',
            choices=TransitionId.values,
            help='Transition applied to every scan; without it scans are inquiries',
        )
        parser.add_argument('--username', help='Operator recorded in the status history')
        parser.add_argument(
            '--continuous',
            action='store_true',
            help='Restart the camera after each scan instead of exiting',
        )
        parser.add_argument(
            '--next-camera',
            action='store_true',
            help='Skip the automatically chosen camera and use the next one',
        )

    def handle(self, *args, **options):
        actor = None
        if options['username']:
            User = get_user_model()
            try:
                actor = User.objects.get(username=options['username'])
            except User.DoesNotExist:
                raise CommandError(f"User '{options['username']}' does not exist")

        session = ScanSession(active_transition_id=options['transition'])
        router = ScanRouter(
            session,
            actor=actor,
            dispatcher=ScanDispatcher(feedback=self._beep),
            inquiry=InquiryService(feedback=self._beep),
        )

        config = getattr(settings, 'MAINTENANCE_SCANNER', {})
        adapter = CameraDecodeAdapter(
            OpenCVVideoBackend(max_devices=config.get('CAMERA_MAX_DEVICES', 10)),
            feedback=self._beep,
            on_indicator=lambda text: self.stdout.write(self.style.SUCCESS(f'✓ {text}')),
            on_error=lambda message: self.stderr.write(self.style.ERROR(message)),
        )

        results = queue.Queue()

        def on_decode(text):
            results.put(router.route(text))

        if session.active_transition:
            self.stdout.write(self.style.WARNING(f'Action: {session.active_transition.label}'))
        else:
            self.stdout.write(self.style.WARNING('Inquiry mode (no transition selected)'))

        if adapter.start(on_decode) is None:
            raise CommandError(adapter.error_message)
        if options['next_camera']:
            adapter.switch_camera()
        self.stdout.write(f'Using camera: {adapter.current_device.label or adapter.current_device.id}')

        try:
            while True:
                try:
                    outcome = results.get(timeout=0.5)
                except queue.Empty:
                    if not adapter.is_running and adapter.error_message:
                        raise CommandError(adapter.error_message)
                    continue

                self._report(outcome)
                if not options['continuous']:
                    break
                if adapter.start(on_decode) is None:
                    raise CommandError(adapter.error_message)
        except KeyboardInterrupt:
            self.stdout.write('\nStopped.')
        finally:
            adapter.stop()

    def _beep(self, cue):
        self.stdout.write('\a', ending='')
        self.stdout.flush()

    def _report(self, outcome):
        if outcome is None:
            self.stdout.write(self.style.WARNING('- Scan ignored'))
            return

        # Scan log entry from the dispatcher
        if hasattr(outcome, 'success'):
            style = self.style.SUCCESS if outcome.success else self.style.ERROR
            details = ' | '.join(filter(None, [outcome.item_name, outcome.customer_name]))
            self.stdout.write(style(f'{outcome.maint_no}: {outcome.message}'))
            if details:
                self.stdout.write(f'   {details}')
            return

        # Inquiry outcome
        if outcome.found:
            record = outcome.record
            self.stdout.write(self.style.SUCCESS(f'{record.maint_no}: {record.status}'))
            self.stdout.write(f'   {record.item_name} | {record.customer_name}')
        else:
            self.stdout.write(self.style.ERROR(outcome.message))
